from datetime import datetime, timezone

from conftest import FakeStore
from mingle_analytics.adapters import (
    DataOrbitZoneAdapter,
    DATAORBITZONE,
    MainSiteAdapter,
    MAIN,
    SearchProjectAdapter,
    SEARCHPROJECT,
    list_email_captures,
    parse_ts,
)


def test_parse_ts():
    assert parse_ts("2026-01-29T12:34:56.000Z") == datetime(2026, 1, 29, 12, 34, 56, tzinfo=timezone.utc)
    assert parse_ts(datetime(2026, 1, 1)).tzinfo is timezone.utc
    assert parse_ts("yesterday") is None
    assert parse_ts(None) is None


def test_main_site_joins_sessions_page_views_and_clicks():
    store = FakeStore({
        "sessions": [
            {"session_id": "s1", "ip_address": "1.2.3.4", "user_agent": "Firefox", "country": "US",
             "created_at": "2026-10-01T10:00:00", "last_active": "2026-10-01T10:05:00"},
            {"session_id": "s2", "ip_address": None, "created_at": "2026-10-01T09:00:00"},
        ],
        "page_views": [
            {"id": 1, "session_id": "s1", "page_url": "/", "viewed_at": "2026-10-01T10:00:00"},
            {"id": 2, "session_id": "s1", "page_url": "/blog/x", "blog_id": "b1", "viewed_at": "2026-10-01T10:01:00"},
        ],
        "clicks": [
            {"id": 1, "session_id": "s1", "button_id": "related-search-0", "button_label": "Remote Jobs",
             "clicked_at": "2026-10-01T10:02:00"},
            {"id": 2, "session_id": "s1", "button_id": "visit-now-0", "button_label": "Remote Jobs",
             "clicked_at": "2026-10-01T10:03:00"},
            {"id": 3, "session_id": "s1", "button_id": "blog-card-b1", "button_label": "Saving Money",
             "clicked_at": "2026-10-01T10:04:00"},
            {"id": 4, "session_id": "s1", "button_id": "subscribe", "button_label": "Subscribe",
             "clicked_at": "2026-10-01T10:06:00"},
        ],
        "blogs": [{"id": "b1", "title": "Saving Money"}],
    })

    report = MainSiteAdapter(MAIN).build_report(store)
    sessions = {s.session_id: s for s in report.summaries}

    s1 = sessions["s1"]
    assert s1.project_name == "TopicMingle"
    assert s1.device == "desktop"
    assert (s1.page_views, s1.unique_pages, s1.total_clicks, s1.unique_clicks) == (2, 2, 4, 4)
    assert s1.search_results[0].term == "Remote Jobs"
    assert s1.search_results[0].total_clicks == 1
    assert s1.search_results[0].visit_now_clicks == 1
    assert s1.blog_clicks[0].title == "Saving Money"
    assert [b.button for b in s1.button_interactions] == ["Subscribe"]
    assert s1.last_active == datetime(2026, 10, 1, 10, 6, tzinfo=timezone.utc)

    assert sessions["s2"].page_views == 0
    assert report.stats.session_count == 2
    # only the page view references an id; the clicks table carries labels
    assert store.lookups == [("blogs", ["b1"])]


def test_dataorbitzone_counts_button_events_and_resolves_ids():
    store = FakeStore({
        "analytics": [
            {"id": "a1", "session_id": "s1", "event_type": "related_search_click", "button_id": "related-search-1",
             "related_search_id": "rs1", "ip_address": "5.5.5.5", "created_at": "2026-10-01T10:00:00Z"},
            {"id": "a2", "session_id": "s1", "event_type": "button", "button_id": "cta", "button_label": "Get Started",
             "ip_address": "5.5.5.5", "created_at": "2026-10-01T10:01:00Z"},
            {"id": "a3", "session_id": None, "event_type": "page_view", "url": "/home", "ip_address": "6.6.6.6"},
        ],
        "related_searches": [{"id": "rs1", "search_text": "Remote Jobs"}],
    })

    report = DataOrbitZoneAdapter(DATAORBITZONE).build_report(store)
    sessions = {s.session_id: s for s in report.summaries}

    assert sessions["s1"].total_clicks == 2
    assert sessions["s1"].search_results[0].term == "Remote Jobs"
    assert sessions["s1"].button_interactions[0].button == "Get Started"
    assert sessions["anon-6.6.6.6"].page_views == 1
    assert store.lookups == [("related_searches", ["rs1"])]


def test_searchproject_stats_prefer_explicit_id_arrays():
    store = FakeStore({
        "analytics": [
            {"id": 1, "session_id": "p1", "page_views": 3, "clicks": 2, "time_spent": 95,
             "page_urls": ["/", "/a", "/a"], "button_ids": ["r1", "r2"], "timestamp": "2026-10-01T10:00:00Z"},
            {"id": 2, "session_id": "p2", "page_views": 2, "clicks": 1,
             "page_urls": ["/", "/b"], "button_ids": ["r1"]},
        ],
    })

    report = SearchProjectAdapter(SEARCHPROJECT).build_report(store)

    assert report.summaries[0].unique_pages == 2
    assert report.summaries[0].time_spent == 95
    assert report.stats.session_count == 2
    assert report.stats.page_views == 5
    assert report.stats.unique_pages == 3
    assert report.stats.unique_clicks == 2


def test_searchproject_stats_fall_back_to_summed_rollups():
    store = FakeStore({
        "analytics": [
            {"id": 7, "page_views": 4, "unique_pages": 2, "clicks": 3, "unique_clicks": 2,
             "related_searches": 5, "result_clicks": 3, "unique_result_clicks": 1},
            {"id": 8, "page_views": 1, "unique_pages_count": 1, "clicks": 0},
        ],
    })

    report = SearchProjectAdapter(SEARCHPROJECT).build_report(store)
    first = report.summaries[0]

    assert first.session_id == "sp-7"
    assert first.search_results[0].term == "results"
    assert first.search_results[0].views == 5
    assert first.button_interactions[0].button == "result-click"
    assert first.button_interactions[0].unique == 1
    assert report.summaries[1].search_results == []
    assert report.stats.unique_pages == 3
    assert report.stats.unique_clicks == 2


def test_searchproject_tolerates_objects_inside_id_arrays():
    store = FakeStore({
        "analytics": [
            {"id": 1, "session_id": "odd", "page_views": 2, "clicks": 1,
             "page_urls": [{"url": "/c"}, "/"], "button_ids": [{"id": "r1"}]},
            {"id": 2, "session_id": "ok", "page_views": 1, "page_urls": ["/"]},
        ],
    })

    report = SearchProjectAdapter(SEARCHPROJECT).build_report(store)

    assert [s.session_id for s in report.summaries] == ["odd", "ok"]
    assert report.summaries[0].unique_pages == 2
    assert report.summaries[0].unique_clicks == 1
    assert report.stats.unique_pages == 2


def test_email_captures_skip_rows_without_email():
    store = FakeStore({
        "email_captures": [
            {"id": "e1", "email": "a@example.com", "page_key": "home", "captured_at": "2026-10-01T10:00:00Z"},
            {"id": "e2", "email": None},
        ],
    })
    captures = list_email_captures(store)
    assert [c.email for c in captures] == ["a@example.com"]
