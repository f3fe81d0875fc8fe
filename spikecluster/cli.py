"""Command line entry point: cluster the spikes stored in a .npz or .mat file."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from spikecluster.config import (
    ClusterConfiguration,
    ClusteringMethod,
    DistanceMetric,
    FeedbackMode,
    KMeansParameters,
    LinkageCriterion,
    WardParameters,
)
from spikecluster.core import SpikeSorter

logger = logging.getLogger("spikecluster")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Cluster spike waveforms into units, channel by channel.')

    parser.add_argument('input', type=str, help='Spike file (.npz or .mat)')
    parser.add_argument('--output', type=str, default=None,
                        help='Where to save the sorted spikes (default: <input>_sorted.<ext>)')

    # Clustering settings
    parser.add_argument('--method', type=str, choices=[m.value for m in ClusteringMethod],
                        default=ClusteringMethod.WARD.value, help='Clustering method (default: ward)')
    parser.add_argument('--distance', type=str, choices=[m.value for m in DistanceMetric],
                        default=DistanceMetric.L2.value, help='Waveform distance for ward (default: L2)')
    parser.add_argument('--linkage', type=str, choices=[m.value for m in LinkageCriterion],
                        default=LinkageCriterion.WARD.value, help='Linkage criterion (default: ward)')
    parser.add_argument('--clusters', type=int, default=10,
                        help='Number of units per channel (default: 10)')
    parser.add_argument('--no-absolute', action='store_true',
                        help='Do not take the absolute value of distances before linkage')
    parser.add_argument('--similarity-to-distance', action='store_true',
                        help='Use 1 - similarity for the correlation and cosine distances')

    # Channel and processing settings
    parser.add_argument('--channel', type=str, nargs='+', default=['all'],
                        help="Channels to sort: labels or wildcards, --channel=-label excludes (default: all)")
    parser.add_argument('--feedback', type=str, choices=[m.value for m in FeedbackMode],
                        default=FeedbackMode.TEXTBAR.value, help='Progress reporting (default: textbar)')
    parser.add_argument('--jobs', type=int, default=1,
                        help='Number of channels clustered in parallel (default: 1)')
    parser.add_argument('--verbose', action='store_true', help='Log merge steps')

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> ClusterConfiguration:
    """Create ClusterConfiguration from command line arguments."""
    output = args.output
    if output is None:
        path = Path(args.input)
        output = str(path.with_name(f"{path.stem}_sorted{path.suffix or '.npz'}"))

    return ClusterConfiguration(
        method=args.method,
        channel=args.channel,
        feedback=args.feedback,
        ward=WardParameters(
            distance=args.distance,
            linkage=args.linkage,
            n_clusters=args.clusters,
            absolute=not args.no_absolute,
            similarity_to_distance=args.similarity_to_distance,
        ),
        kmeans=KMeansParameters(n_clusters=args.clusters),
        n_jobs=max(1, args.jobs),
        inputfile=args.input,
        outputfile=output,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    try:
        config = create_config_from_args(args)
        results = SpikeSorter(config).run()
    except (ValueError, FileNotFoundError) as e:
        logger.error(f"Error during spike clustering: {e}")
        return 1

    print("\nSpike Clustering Summary:")
    for label, info in results.summary().items():
        sizes = ", ".join(f"{unit}: {n}" for unit, n in info['unit_sizes'].items())
        print(f"Channel {label}: {info['n_spikes']} spikes in {info['n_units']} units ({sizes})")
    print(f"\nSaved results to {config.outputfile}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
