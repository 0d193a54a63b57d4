"""
CSV Export Module - Component Usage Results

Exports the usage statistics to CSV files for Excel or other tooling:
1. components.csv - one row per tracked component
2. component_files.csv - one row per (component, file) pair
3. files.csv - one row per analyzed file, including errored ones
"""

import csv
from pathlib import Path
from typing import Dict

from ..models.schema import RunReport, UsageReport


def export_components(usage: UsageReport, output_path: Path) -> int:
    """
    Columns:
    - Component
    - Total Usages
    - Priority
    - Files
    - Packages
    """
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['Component', 'Total Usages', 'Priority', 'Files', 'Packages'])
        for comp in usage.components:
            writer.writerow([
                comp.name,
                comp.total_usages,
                comp.priority,
                len(comp.per_file),
                '; '.join(sorted(comp.source_modules)),
            ])
    return len(usage.components)


def export_component_files(usage: UsageReport, output_path: Path) -> int:
    rows = 0
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['Component', 'File', 'Usages'])
        for comp in usage.components:
            for path, count in comp.per_file.items():
                writer.writerow([comp.name, path, count])
                rows += 1
    return rows


def export_files(report: RunReport, usage: UsageReport, output_path: Path) -> int:
    """
    Columns:
    - File Path
    - Status
    - Total Usages
    - Components
    - Message
    """
    totals = {f.path: f for f in usage.files}
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['File Path', 'Status', 'Total Usages', 'Components', 'Message'])
        for outcome in report.files:
            fu = totals.get(outcome.path)
            writer.writerow([
                outcome.path,
                outcome.status,
                fu.total_usages if fu else 0,
                '; '.join(f"{k}={v}" for k, v in sorted(fu.component_usage.items())) if fu else '',
                outcome.message or '',
            ])
    return len(report.files)


def export_all(report: RunReport, usage: UsageReport, output_dir: Path) -> Dict[str, int]:
    output_dir.mkdir(parents=True, exist_ok=True)
    return {
        'components.csv': export_components(usage, output_dir / 'components.csv'),
        'component_files.csv': export_component_files(usage, output_dir / 'component_files.csv'),
        'files.csv': export_files(report, usage, output_dir / 'files.csv'),
    }
