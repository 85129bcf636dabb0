import argparse
import asyncio

from mingle_analytics.config import settings
from mingle_analytics.database import SessionLocal
from mingle_analytics.merger import PERIODS, SITES, build_sources, filter_report, merge_projects


def print_report(site: str = "all", period: str = "all", limit: int = 20):
    report = asyncio.run(merge_projects(build_sources(settings, SessionLocal)))
    view = filter_report(report, site, period)

    print(f"{'Site':<15} | {'Sessions':>8} | {'Views':>6} | {'Pages':>6} | {'Clicks':>6} | {'Unique':>6}")
    print("-" * 64)
    for s in view.site_stats:
        print(f"{s.project_name:<15} | {s.session_count:>8} | {s.page_views:>6} | "
              f"{s.unique_pages:>6} | {s.total_clicks:>6} | {s.unique_clicks:>6}")

    print()
    print(f"{'Session':<10} | {'Site':<15} | {'Country':<7} | {'Last active (UTC)':<20} | {'Views':>5} | {'Clicks':>6}")
    print("-" * 80)
    for s in view.sessions[:limit]:
        last_active = s.last_active.strftime('%Y-%m-%d %H:%M:%S') if s.last_active else "-"
        print(f"{s.session_id[:8] + '..':<10} | {s.project_name:<15} | {s.country:<7} | "
              f"{last_active:<20} | {s.page_views:>5} | {s.total_clicks:>6}")
        for sr in s.search_results:
            print(f"{'':<12}search '{sr.term}': {sr.total_clicks} clicks ({sr.unique_clicks} unique), "
                  f"visit now {sr.visit_now_clicks} ({sr.visit_now_unique} unique)")
        for bc in s.blog_clicks:
            print(f"{'':<12}blog '{bc.title}': {bc.total_clicks} clicks ({bc.unique_clicks} unique)")
        for bi in s.button_interactions:
            print(f"{'':<12}button '{bi.button}': {bi.total} ({bi.unique} unique)")

    print("-" * 80)
    print(f"Sessions shown: {min(limit, len(view.sessions))} of {len(view.sessions)}")
    for warning in view.warnings:
        print(f"WARNING: {warning}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print the unified analytics report")
    parser.add_argument("--site", choices=SITES, default="all")
    parser.add_argument("--period", choices=PERIODS, default="all")
    parser.add_argument("--limit", type=int, default=20)
    args = parser.parse_args()
    print_report(args.site, args.period, args.limit)
