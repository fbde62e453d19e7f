"""
HTML Report Generator

Generates a self-contained HTML migration report with a difficulty chart,
wave breakdown and per-job table.
"""

import html
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Union

from ..analysis.complexity_calculator import JobComplexityResult
from ..analysis.pipeline import AnalysisResult, job_risks
from ..domain.value_objects import MigrationDifficulty
from .exporters import RECOMMENDATIONS, high_risk_jobs

logger = logging.getLogger(__name__)

MAX_TABLE_ROWS = 500

DIFFICULTY_BADGES = {
    MigrationDifficulty.EASY: 'badge-easy',
    MigrationDifficulty.MEDIUM: 'badge-medium',
    MigrationDifficulty.HARD: 'badge-hard',
}


def generate_html_report(result: AnalysisResult, output_path: Union[str, Path] = "analysis.html") -> str:
    """
    Generate the HTML migration report.

    Args:
        result: Outcome of the analysis pipeline
        output_path: Path to write HTML file

    Returns:
        Path to generated HTML file
    """
    counts = difficulty_counts(result.per_job_results)
    cycle_class = 'danger' if result.has_cycle else 'success'
    cycle_text = 'Yes' if result.has_cycle else 'No'

    page = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Control-M to Airflow Migration Report</title>
    <script src="https://cdn.jsdelivr.net/npm/chart.js"></script>
    <style>
        :root {{
            --primary: #1f3a5f;
            --secondary: #017cee;
            --success: #1a8754;
            --warning: #ffc107;
            --danger: #dc3545;
            --light: #f8f9fa;
            --dark: #212529;
        }}

        * {{ margin: 0; padding: 0; box-sizing: border-box; }}

        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            line-height: 1.6;
            color: var(--dark);
            background: var(--light);
        }}

        .container {{ max-width: 1400px; margin: 0 auto; padding: 20px; }}

        header {{ background: var(--primary); color: white; padding: 30px 0; margin-bottom: 30px; }}
        header h1 {{ font-size: 2.2rem; margin-bottom: 10px; }}
        header .subtitle {{ color: #9cc9ff; font-size: 1.1rem; }}

        .card {{
            background: white;
            border-radius: 8px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
            padding: 24px;
            margin-bottom: 24px;
        }}

        .card h2 {{
            color: var(--primary);
            border-bottom: 2px solid var(--secondary);
            padding-bottom: 10px;
            margin-bottom: 20px;
        }}

        .metrics {{
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
            gap: 20px;
            margin-bottom: 30px;
        }}

        .metric {{
            background: white;
            border-radius: 8px;
            padding: 20px;
            text-align: center;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        }}

        .metric .value {{ font-size: 2.5rem; font-weight: bold; color: var(--primary); }}
        .metric .label {{ color: #666; font-size: 0.9rem; text-transform: uppercase; }}
        .metric.success .value {{ color: var(--success); }}
        .metric.danger .value {{ color: var(--danger); }}

        .chart-container {{ position: relative; height: 300px; margin: 20px 0; }}

        table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
        th, td {{ padding: 10px; text-align: left; border-bottom: 1px solid #dee2e6; }}
        th {{ background: var(--primary); color: white; }}
        tr:hover {{ background: #f5f5f5; }}

        .badge {{ padding: 4px 12px; border-radius: 20px; font-size: 0.8rem; font-weight: bold; }}
        .badge-easy {{ background: #d4edda; color: #155724; }}
        .badge-medium {{ background: #fff3cd; color: #856404; }}
        .badge-hard {{ background: #f8d7da; color: #721c24; }}

        .two-col {{ display: grid; grid-template-columns: 1fr 1fr; gap: 24px; }}
        @media (max-width: 768px) {{ .two-col {{ grid-template-columns: 1fr; }} }}

        .recommendation {{
            padding: 12px 16px;
            border-radius: 4px;
            margin: 8px 0;
            background: #d1ecf1;
            border-left: 4px solid #0c5460;
        }}

        footer {{ text-align: center; padding: 30px; color: #666; border-top: 1px solid #dee2e6; margin-top: 40px; }}
    </style>
</head>
<body>
    <header>
        <div class="container">
            <h1>Control-M to Airflow Migration Report</h1>
            <p class="subtitle">Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</p>
        </div>
    </header>

    <div class="container">
        <!-- Executive Summary -->
        <div class="metrics">
            <div class="metric">
                <div class="value">{result.total_jobs}</div>
                <div class="label">Total Jobs</div>
            </div>
            <div class="metric">
                <div class="value">{result.total_folders}</div>
                <div class="label">Total Folders</div>
            </div>
            <div class="metric">
                <div class="value">{result.average_complexity:.2f}</div>
                <div class="label">Average Complexity</div>
            </div>
            <div class="metric">
                <div class="value">{len(result.waves)}</div>
                <div class="label">Migration Waves</div>
            </div>
            <div class="metric {cycle_class}">
                <div class="value">{cycle_text}</div>
                <div class="label">Circular Dependencies</div>
            </div>
        </div>

        <!-- Difficulty and Waves -->
        <div class="card">
            <h2>Migration Difficulty</h2>
            <div class="two-col">
                <div class="chart-container">
                    <canvas id="difficultyChart"></canvas>
                </div>
                <div class="chart-container">
                    <canvas id="waveChart"></canvas>
                </div>
            </div>
        </div>

        <div class="card">
            <h2>Migration Waves</h2>
            {_generate_wave_table(result)}
        </div>

        <div class="card">
            <h2>High-Risk Jobs</h2>
            {_generate_risk_table(high_risk_jobs(result))}
        </div>

        <div class="card">
            <h2>Job Details</h2>
            {_generate_jobs_table(result.per_job_results)}
        </div>

        <div class="card">
            <h2>Recommendations</h2>
            {''.join(f'<div class="recommendation">{html.escape(rec)}</div>' for rec in RECOMMENDATIONS)}
        </div>
    </div>

    <footer>
        <p>Generated by Control-M Migration Analyzer</p>
    </footer>

    <script>
        new Chart(document.getElementById('difficultyChart'), {{
            type: 'doughnut',
            data: {{
                labels: ['Easy', 'Medium', 'Hard'],
                datasets: [{{
                    data: {json.dumps([counts[d] for d in MigrationDifficulty])},
                    backgroundColor: ['#1a8754', '#ffc107', '#dc3545']
                }}]
            }},
            options: {{
                responsive: true,
                maintainAspectRatio: false,
                plugins: {{ title: {{ display: true, text: 'Difficulty Distribution' }} }}
            }}
        }});

        new Chart(document.getElementById('waveChart'), {{
            type: 'bar',
            data: {{
                labels: {json.dumps([f'Wave {w.wave}' for w in result.waves])},
                datasets: [{{
                    label: 'Jobs',
                    data: {json.dumps([len(w.jobs) for w in result.waves])},
                    backgroundColor: '#017cee'
                }}]
            }},
            options: {{
                responsive: true,
                maintainAspectRatio: false,
                plugins: {{ title: {{ display: true, text: 'Jobs per Wave' }} }},
                scales: {{ y: {{ beginAtZero: true }} }}
            }}
        }});
    </script>
</body>
</html>"""

    output_path = Path(output_path)
    output_path.write_text(page, encoding='utf-8')
    logger.info(f"HTML report written to {output_path}")

    return str(output_path)


def difficulty_counts(results: List[JobComplexityResult]) -> dict:
    counts = {d: 0 for d in MigrationDifficulty}
    for r in results:
        counts[r.migration_difficulty] += 1
    return counts


def _generate_wave_table(result: AnalysisResult) -> str:
    if not result.waves:
        return '<p>No jobs to migrate.</p>'

    rows = ""
    for wave in result.waves:
        jobs = result.jobs_in_wave(wave.wave)
        average = sum(j.complexity_score.value for j in jobs) / len(jobs) if jobs else 0
        rows += f"""
        <tr>
            <td>Wave {wave.wave}</td>
            <td>{len(wave.jobs)}</td>
            <td>{average:.1f}</td>
            <td>{html.escape(wave.reason)}</td>
        </tr>"""

    return f"""
    <table>
        <thead>
            <tr><th>Wave</th><th>Jobs</th><th>Avg Complexity</th><th>Reason</th></tr>
        </thead>
        <tbody>
            {rows}
        </tbody>
    </table>"""


def _generate_risk_table(jobs: List[JobComplexityResult]) -> str:
    if not jobs:
        return '<p class="recommendation">No high-risk jobs identified.</p>'

    rows = ""
    for job in jobs:
        rows += f"""
        <tr>
            <td>{html.escape(job.job_name)}</td>
            <td>{html.escape(job.folder_name)}</td>
            <td>{job.complexity_score.value}</td>
            <td>{html.escape('; '.join(job_risks(job)))}</td>
        </tr>"""

    return f"""
    <table>
        <thead>
            <tr><th>Job Name</th><th>Folder</th><th>Complexity</th><th>Risks</th></tr>
        </thead>
        <tbody>
            {rows}
        </tbody>
    </table>"""


def _generate_jobs_table(results: List[JobComplexityResult]) -> str:
    rows = ""
    for job in results[:MAX_TABLE_ROWS]:
        badge = DIFFICULTY_BADGES[job.migration_difficulty]
        rows += f"""
        <tr>
            <td>{html.escape(job.job_name)}</td>
            <td>{html.escape(job.folder_name)}</td>
            <td>{job.complexity_score.value}</td>
            <td><span class="badge {badge}">{job.migration_difficulty.value}</span></td>
            <td>{job.migration_priority.value}</td>
            <td>{job.dependency_count}</td>
            <td>{job.migration_wave}</td>
            <td>{job.migration_difficulty.estimated_effort_hours}h</td>
        </tr>"""

    more = ''
    if len(results) > MAX_TABLE_ROWS:
        more = f'<p style="color: #666; margin-top: 10px;">Showing first {MAX_TABLE_ROWS} of {len(results)} jobs</p>'

    return f"""
    <div style="max-height: 600px; overflow-y: auto;">
        <table>
            <thead>
                <tr>
                    <th>Job Name</th>
                    <th>Folder</th>
                    <th>Complexity</th>
                    <th>Difficulty</th>
                    <th>Priority</th>
                    <th>Dependencies</th>
                    <th>Wave</th>
                    <th>Effort</th>
                </tr>
            </thead>
            <tbody>
                {rows}
            </tbody>
        </table>
    </div>
    {more}"""
