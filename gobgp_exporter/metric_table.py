"""Markdown documentation of the metrics the exporter can produce."""

from typing import Iterable

from gobgp_exporter.descriptors import DESCRIPTORS, Descriptor


def get_metrics_table(descriptors: Iterable[Descriptor] = DESCRIPTORS) -> str:
    """Return a Markdown table with the exposed name, help and labels of each metric."""
    lines = [
        "| **Metric** | **Description** | **Labels** |",
        "| ------ | ------- | ------ |",
    ]
    for d in descriptors:
        labels = "`, `".join(sorted(d.labels))
        labels_cell = f"`{labels}`" if labels else ""
        lines.append(f"| `{d.sample_name}` | {d.help} | {labels_cell} |")
    return "\n".join(lines) + "\n"
