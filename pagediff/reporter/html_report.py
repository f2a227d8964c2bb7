"""HTML report generator — self-contained side-by-side comparison report."""

from __future__ import annotations

import base64
import html
import logging
from pathlib import Path

from pagediff.models.results import ComparisonResult, RunReport, TaskFailure
from pagediff.url_utils import environment_label

logger = logging.getLogger(__name__)


def _embed_image(path: str) -> str:
    """Read an image file and return a base64 data URI, or empty string if unreadable."""
    p = Path(path)
    if not p.exists() or p.stat().st_size == 0:
        logger.warning("Screenshot missing for report: %s", path)
        return ""
    try:
        data = base64.b64encode(p.read_bytes()).decode()
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
        return ""
    mime = "image/png" if p.suffix.lower() == ".png" else "image/jpeg"
    return f"data:{mime};base64,{data}"


def _image_column(path: str, label: str) -> str:
    data_uri = _embed_image(path)
    if not data_uri:
        body = '<div class="missing">image unavailable</div>'
    else:
        body = (f'<img src="{data_uri}" alt="{html.escape(label)}" loading="lazy" '
                f'onclick="this.classList.toggle(\'zoomed\')"/>')
    return f'''
        <div class="shot">
          <div class="shot-label">{html.escape(label)}</div>
          {body}
        </div>'''


def _build_result_card(r: ComparisonResult, baseline_label: str, candidate_label: str) -> str:
    status = "match" if r.matched else "diff"
    verdict = ("No visual difference" if r.matched
               else f"{r.diff_pixel_count:,} pixels differ")
    card = f'''
    <div class="result-card {status}">
      <div class="result-header">
        <span class="badge {status}">{status.upper()}</span>
        <strong>{html.escape(r.target)}</strong>
        <span class="result-meta">{verdict} &middot; {r.width}&times;{r.height} &middot; {r.duration_seconds:.1f}s &middot; attempt {r.attempts}</span>
      </div>
      <div class="shots">'''
    card += _image_column(r.artifact_paths.baseline, baseline_label)
    card += _image_column(r.artifact_paths.candidate, candidate_label)
    card += _image_column(r.artifact_paths.diff, "Compare")
    card += '</div>'
    if not r.matched:
        card += ('<div class="diff-note">Differences are highlighted in red in the '
                 'Compare image.</div>')
    card += '</div>'
    return card


def _build_failures_section(failures: list[TaskFailure]) -> str:
    if not failures:
        return ""
    rows = "".join(
        f"<tr><td>{html.escape(f.target)}</td><td>{f.attempts}</td><td>{html.escape(f.reason)}</td></tr>"
        for f in failures
    )
    return f'''
  <div class="failures">
    <h2>&#9888; Failed targets ({len(failures)})</h2>
    <table><thead><tr><th>Target</th><th>Attempts</th><th>Reason</th></tr></thead><tbody>{rows}</tbody></table>
  </div>'''


def generate_html_report(report: RunReport, output_path: Path) -> None:
    """Write a single HTML file with every image embedded."""
    s = report.summary
    baseline_label = environment_label(report.baseline_url)
    candidate_label = environment_label(report.candidate_url)
    if baseline_label == candidate_label:
        baseline_label, candidate_label = "Baseline", "Candidate"

    cards = "".join(_build_result_card(r, baseline_label, candidate_label) for r in report.results)

    report_html = f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Visual Comparison Report &mdash; {html.escape(report.run_id)}</title>
<style>
  :root {{ --match: #22c55e; --diff: #ef4444; --bg: #f8fafc; --card: white; --border: #e2e8f0; --text: #1e293b; --muted: #64748b; }}
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--text); line-height: 1.6; padding: 1.5rem; }}
  .container {{ max-width: 1400px; margin: 0 auto; }}
  h1 {{ font-size: 1.8rem; margin-bottom: 0.3rem; }}
  .meta {{ color: var(--muted); margin-bottom: 1.5rem; font-size: 0.9rem; }}
  .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 0.8rem; margin-bottom: 1.5rem; }}
  .stat {{ background: var(--card); border-radius: 8px; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }}
  .stat .value {{ font-size: 1.6rem; font-weight: 700; }}
  .stat .label {{ font-size: 0.8rem; color: var(--muted); }}
  .stat.match .value {{ color: var(--match); }}
  .stat.diff .value {{ color: var(--diff); }}
  .badge {{ display: inline-block; padding: 0.15rem 0.55rem; border-radius: 9999px; font-size: 0.7rem; font-weight: 600; }}
  .badge.match {{ background: #dcfce7; color: #166534; }}
  .badge.diff {{ background: #fecaca; color: #991b1b; }}
  .failures {{ background: #fef2f2; border-radius: 8px; padding: 1.2rem; margin-bottom: 1.5rem; border-left: 4px solid var(--diff); }}
  .failures h2 {{ color: var(--diff); font-size: 1rem; margin-bottom: 0.4rem; }}
  .failures table {{ width: 100%; border-collapse: collapse; font-size: 0.85rem; }}
  .failures th, .failures td {{ text-align: left; padding: 0.3rem 0.5rem; border-bottom: 1px solid #fecaca; }}
  .result-card {{ background: var(--card); border-radius: 8px; margin-bottom: 1rem; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); }}
  .result-card.match {{ border-left: 4px solid var(--match); }}
  .result-card.diff {{ border-left: 4px solid var(--diff); }}
  .result-header {{ display: flex; align-items: center; gap: 0.5rem; flex-wrap: wrap; margin-bottom: 0.8rem; }}
  .result-meta {{ font-size: 0.78rem; color: var(--muted); }}
  .shots {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 0.8rem; }}
  .shot {{ text-align: center; }}
  .shot img {{ width: 100%; max-height: 580px; object-fit: contain; object-position: top; border-radius: 6px; border: 1px solid var(--border); cursor: pointer; }}
  .shot img.zoomed {{ position: fixed; top: 5%; left: 5%; width: 90%; height: 90%; max-height: none; object-fit: contain; z-index: 1000; background: rgba(0,0,0,0.85); border: none; border-radius: 8px; padding: 1rem; }}
  .shot-label {{ font-size: 0.8rem; font-weight: 600; color: var(--muted); margin-bottom: 0.3rem; }}
  .missing {{ padding: 2rem; color: var(--muted); border: 1px dashed var(--border); border-radius: 6px; font-size: 0.8rem; }}
  .diff-note {{ margin-top: 0.6rem; color: var(--diff); font-size: 0.85rem; }}
</style>
</head>
<body>
<div class="container">
  <h1>Visual Comparison Report</h1>
  <p class="meta">Run: {html.escape(report.run_id)} &middot; {html.escape(baseline_label)}: {html.escape(report.baseline_url)} &middot; {html.escape(candidate_label)}: {html.escape(report.candidate_url)} &middot; {html.escape(s.started_at)} &ndash; {html.escape(s.completed_at)}</p>

  <div class="summary">
    <div class="stat"><div class="value">{s.total_urls}</div><div class="label">URLs compared</div></div>
    <div class="stat match"><div class="value">{s.matched}</div><div class="label">Matched</div></div>
    <div class="stat diff"><div class="value">{s.mismatched}</div><div class="label">Differ</div></div>
    <div class="stat diff"><div class="value">{s.failed}</div><div class="label">Failed</div></div>
    <div class="stat"><div class="value">{s.average_duration_seconds:.2f}s</div><div class="label">Average task duration</div></div>
    <div class="stat"><div class="value">{s.total_duration_seconds / 60:.2f} min</div><div class="label">Total time ({s.total_duration_seconds:.1f}s)</div></div>
  </div>
  {_build_failures_section(report.failures)}
  <div id="result-list">
    {cards}
  </div>
</div>
</body>
</html>'''

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_html)
