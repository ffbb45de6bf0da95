#!/usr/bin/env python3
"""
docindex CLI
Provides commands for building the ranked word index and plotting run metrics
"""

import argparse
import json
import logging
import sys

from docindex.config import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_WORKERS,
    DEFAULT_NUM_MAP_TASKS,
    DEFAULT_NUM_REDUCE_TASKS,
    DEFAULT_WORK_DIR,
    PipelineConfig,
    parse_threshold,
)
from docindex.coordinator.pipeline import IndexPipeline
from docindex.errors import ConfigError, JobFailedError


def run_index(args):
    """Build the index for an input file or directory"""
    try:
        config = PipelineConfig(
            threshold=parse_threshold(args.threshold),
            input_path=args.input,
            output_path=args.output,
            num_map_tasks=args.num_map_tasks,
            num_reduce_tasks=args.num_reduce_tasks,
            use_combiner=not args.no_combiner,
            max_workers=args.max_workers,
            work_dir=args.work_dir,
            keep_intermediate=args.keep_intermediate,
            metrics_path=args.metrics
        )
        result = IndexPipeline(config).run()

    except ConfigError as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1
    except JobFailedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("✓ Index built successfully!")
    print(f"  Run ID: {result.run_id}")
    print(f"  Records read: {result.records_read} ({result.records_skipped} skipped)")
    print(f"  Words written: {result.words_written}")
    print(f"  Output: {result.output_path}")
    if result.work_dir:
        print(f"  Intermediate files: {result.work_dir}")
    if args.metrics:
        print(f"  Metrics: {args.metrics}")
    return 0


def plot_metrics(args):
    """Render charts from a metrics file written by 'run --metrics'"""
    from docindex.tools.visualize import plot_run_metrics

    try:
        with open(args.metrics_file) as f:
            run_metrics = json.load(f)
        written = plot_run_metrics(run_metrics, args.output_dir)
    except (OSError, json.JSONDecodeError, KeyError) as e:
        print(f"Error: Could not plot {args.metrics_file}: {e}", file=sys.stderr)
        return 1

    for path in written:
        print(f"Saved plot to {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='docindex',
        description='Build a per-word, frequency-ranked document index',
        epilog='Example: %(prog)s run 3 records.txt index.txt --num-map-tasks 4 --num-reduce-tasks 2'
    )
    parser.add_argument('--log-level', default=DEFAULT_LOG_LEVEL,
                        help=f'Logging level (default: {DEFAULT_LOG_LEVEL})')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # run command
    run_parser = subparsers.add_parser(
        'run',
        help='Build the index',
        description='Count words per document and rank each word\'s documents by frequency'
    )
    run_parser.add_argument('threshold', help='Minimum record length and minimum word length N')
    run_parser.add_argument('input', help='Input file or directory of "documentID:word1,word2,..." records')
    run_parser.add_argument('output', help='Output file for the ranked index')
    run_parser.add_argument('--num-map-tasks', type=int, default=DEFAULT_NUM_MAP_TASKS,
                            help=f'Number of map tasks (default: {DEFAULT_NUM_MAP_TASKS})')
    run_parser.add_argument('--num-reduce-tasks', type=int, default=DEFAULT_NUM_REDUCE_TASKS,
                            help=f'Number of reduce tasks (default: {DEFAULT_NUM_REDUCE_TASKS})')
    run_parser.add_argument('--max-workers', type=int, default=DEFAULT_MAX_WORKERS,
                            help=f'Worker threads (default: {DEFAULT_MAX_WORKERS})')
    run_parser.add_argument('--no-combiner', action='store_true', help='Disable map-side combining')
    run_parser.add_argument('--work-dir', default=DEFAULT_WORK_DIR,
                            help='Parent directory for intermediate files (default: system temp)')
    run_parser.add_argument('--keep-intermediate', action='store_true',
                            help='Keep intermediate files after the run')
    run_parser.add_argument('--metrics', help='Write run metrics to this JSON file')
    run_parser.set_defaults(func=run_index)

    # plot-metrics command
    plot_parser = subparsers.add_parser(
        'plot-metrics',
        help='Plot run metrics',
        description='Render phase timing and combiner charts from a metrics JSON file'
    )
    plot_parser.add_argument('metrics_file', help='Metrics JSON written by "run --metrics"')
    plot_parser.add_argument('--output-dir', default='.', help='Directory for PNG files (default: .)')
    plot_parser.set_defaults(func=plot_metrics)

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # If no command specified, print help
    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
