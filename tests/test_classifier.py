import pytest

from conftest import make_event
from mingle_analytics.classifier import (
    CLICK_KINDS,
    EventKind,
    UNKNOWN_BUTTON,
    classify,
    is_click,
    is_page_view,
)
from mingle_analytics.labels import ResolvedLabels


@pytest.mark.parametrize("event_type", ["page_view", "PAGE_VIEW", "pageview", "page-view", "View", "page"])
def test_page_view_predicate_is_case_insensitive_substring(event_type):
    assert is_page_view(event_type)


@pytest.mark.parametrize("event_type", [None, "", "click", "scroll"])
def test_not_a_page_view(event_type):
    assert not is_page_view(event_type)


def test_click_predicate_uses_project_keywords():
    assert is_click("CLICK")
    assert is_click("button_click")
    assert not is_click("button")
    assert is_click("button", ("click", "button"))


def test_related_search_click_uses_resolved_label():
    labels = ResolvedLabels(related_search={"rs1": "Remote Jobs"})
    c = classify(make_event(event_type="click", button_id="related-search-1", button_label="jobs",
                            related_search_id="rs1"), labels)
    assert c.click and c.kind is EventKind.RELATED_SEARCH_CLICK
    assert c.label == "Remote Jobs"


def test_related_search_click_falls_back_to_button_label():
    c = classify(make_event(event_type="click", button_id="related-search-1", button_label="Remote Jobs",
                            related_search_id="missing"))
    assert c.kind is EventKind.RELATED_SEARCH_CLICK
    assert c.label == "Remote Jobs"


def test_related_search_prefix_without_reference_is_other_click():
    c = classify(make_event(event_type="click", button_id="related-search-9"))
    assert c.kind is EventKind.OTHER_CLICK
    assert c.label == "related-search-9"


def test_visit_now_term_comes_from_label_or_button_id():
    assert classify(make_event(event_type="click", button_id="visit-now-3", button_label="Cloud Hosting")).label == "Cloud Hosting"
    c = classify(make_event(event_type="click", button_id="visit-now-Remote Jobs"))
    assert c.kind is EventKind.VISIT_NOW_CLICK
    assert c.label == "Remote Jobs"


def test_blog_card_click_requires_a_blog_reference():
    labels = ResolvedLabels(blog={"b1": "Saving Money"})
    c = classify(make_event(event_type="click", button_id="blog-card-1", blog_id="b1"), labels)
    assert c.kind is EventKind.BLOG_CLICK
    assert c.label == "Saving Money"

    c = classify(make_event(event_type="click", button_id="blog-card-1", button_label="Read more"))
    assert c.kind is EventKind.OTHER_CLICK
    assert c.label == "Read more"


def test_unknown_button_is_dropped_from_breakdowns():
    c = classify(make_event(event_type="click", button_id=UNKNOWN_BUTTON))
    assert c.click
    assert c.kind is EventKind.NONE
    assert c.label is None

    c = classify(make_event(event_type="click"))
    assert c.click and c.kind is EventKind.NONE


def test_page_view_and_click_are_orthogonal():
    c = classify(make_event(event_type="page_click", button_id="subscribe", button_label="Subscribe"))
    assert c.page_view and c.click
    assert c.kind is EventKind.OTHER_CLICK


def test_page_view_with_related_search_carries_view_term():
    labels = ResolvedLabels(related_search={"rs1": "Remote Jobs"})
    c = classify(make_event(event_type="page_view", related_search_id="rs1"), labels)
    assert c.kind is EventKind.PAGE_VIEW
    assert c.view_term == "Remote Jobs"


def test_missing_fields_never_raise():
    c = classify(make_event())
    assert not c.page_view and not c.click
    assert c.kind is EventKind.NONE


def test_every_click_lands_in_exactly_one_bucket_or_is_the_sentinel():
    events = [
        make_event(event_type="click", button_id="related-search-1", related_search_id="rs1"),
        make_event(event_type="Click", button_id="related-search-2", button_label="x"),
        make_event(event_type="CLICK", button_id="visit-now-1"),
        make_event(event_type="click", button_id="visit-now-"),
        make_event(event_type="click", button_id="blog-card-1", blog_id="b1"),
        make_event(event_type="click", button_id="blog-card-2"),
        make_event(event_type="click", button_id="nav-home", button_label="Home"),
        make_event(event_type="click", button_label="Unknown-Button"),
        make_event(event_type="button_click", button_id="", button_label=""),
    ]
    for event in events:
        c = classify(event)
        assert c.click
        if c.kind is EventKind.NONE:
            assert (event.button_label or event.button_id or UNKNOWN_BUTTON).lower() == UNKNOWN_BUTTON
        else:
            assert c.kind in CLICK_KINDS
