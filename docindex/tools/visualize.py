#!/usr/bin/env python3
"""
Generate performance visualization plots from pipeline run metrics.
"""

import os
from typing import List

import matplotlib

matplotlib.use('Agg')
import matplotlib.pyplot as plt  # noqa: E402


def _round_labels(jobs):
    return [job['job_name'].rsplit('.', 1)[-1] for job in jobs]


def plot_phase_breakdown(run_metrics: dict, output_path: str) -> str:
    """Create stacked bars of map and reduce time for each round."""
    jobs = run_metrics['jobs']
    labels = _round_labels(jobs)
    map_times = [job['map_phase_time_seconds'] for job in jobs]
    reduce_times = [job['reduce_phase_time_seconds'] for job in jobs]

    fig, ax = plt.subplots(figsize=(8, 6))

    ax.bar(labels, map_times, label='Map Phase', color='#FFE66D')
    ax.bar(labels, reduce_times, bottom=map_times, label='Reduce Phase', color='#95E1D3')
    ax.set_ylabel('Time (seconds)')
    ax.set_title('Phase Time Breakdown per Round', fontsize=14, fontweight='bold')
    ax.legend()
    ax.grid(axis='y', alpha=0.3)

    plt.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def plot_combiner_effect(run_metrics: dict, output_path: str) -> str:
    """Create bar charts of map output pairs and data sizes per round."""
    jobs = run_metrics['jobs']
    labels = _round_labels(jobs)
    x = range(len(labels))

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

    # Pairs before and after the combiner
    width = 0.35
    ax1.bar([i - width/2 for i in x], [job['pairs_emitted'] for job in jobs], width,
            label='Emitted', color='#FF6B6B')
    ax1.bar([i + width/2 for i in x], [job['pairs_after_combine'] for job in jobs], width,
            label='After Combiner', color='#4ECDC4')
    ax1.set_ylabel('Intermediate Pairs')
    ax1.set_title('Combiner Effectiveness')
    ax1.set_xticks(list(x))
    ax1.set_xticklabels(labels)
    ax1.legend()
    ax1.grid(axis='y', alpha=0.3)

    for i, job in enumerate(jobs):
        if job['pairs_emitted'] > 0:
            ax1.text(i, job['pairs_emitted'], f"{job['combiner_reduction_ratio'] * 100:.1f}% reduction",
                     ha='center', va='bottom', fontsize=9)

    # Data sizes in KB
    width = 0.25
    ax2.bar([i - width for i in x], [job['input_size_bytes'] / 1024 for job in jobs], width,
            label='Input', color='#A8E6CF')
    ax2.bar(list(x), [job['intermediate_size_bytes'] / 1024 for job in jobs], width,
            label='Intermediate', color='#FFD3B6')
    ax2.bar([i + width for i in x], [job['output_size_bytes'] / 1024 for job in jobs], width,
            label='Output', color='#FFAAA5')
    ax2.set_ylabel('Size (KB)')
    ax2.set_title('Data Size per Round')
    ax2.set_xticks(list(x))
    ax2.set_xticklabels(labels)
    ax2.legend()
    ax2.grid(axis='y', alpha=0.3)

    plt.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def plot_run_metrics(run_metrics: dict, output_dir: str) -> List[str]:
    """Write every chart for a run into output_dir and return their paths."""
    os.makedirs(output_dir, exist_ok=True)
    return [
        plot_phase_breakdown(run_metrics, os.path.join(output_dir, 'phase_breakdown.png')),
        plot_combiner_effect(run_metrics, os.path.join(output_dir, 'combiner_effect.png')),
    ]
