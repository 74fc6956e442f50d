"""Unit tests for third-party request capture and classification."""

from unittest.mock import MagicMock

import pytest

from conftest import FakeSession, make_page
from webaudit.core.network import NetworkObserver, classify_host, summarize_requests
from webaudit.core.probe import ProbeRunner
from webaudit.detectors.interaction import ThirdPartyProbe
from webaudit.models.types import NetworkRequest, ProbeKind, ServiceCategory, ThirdPartyReport


def req(url, resource_type="script", method="GET"):
    return NetworkRequest(url=url, resource_type=resource_type, method=method)


def pw_request(url, resource_type="script", method="GET"):
    request = MagicMock()
    request.url = url
    request.resource_type = resource_type
    request.method = method
    return request


class TestClassifyHost:

    @pytest.mark.parametrize("host,expected", [
        ("www.google-analytics.com", ServiceCategory.ANALYTICS),
        ("connect.facebook.net", ServiceCategory.SOCIAL),
        ("static.fbcdn.net", ServiceCategory.SOCIAL),
        ("ads.example.net", ServiceCategory.ADVERTISING),
        ("stats.g.doubleclick.net", ServiceCategory.ADVERTISING),
        ("static-cdn.io", ServiceCategory.CDN),
        ("api.stripe.com", ServiceCategory.UNKNOWN),
    ])
    def test_categories(self, host, expected):
        assert classify_host(host) == expected

    def test_first_match_wins(self):
        # Matches both google (analytics) and ads (advertising).
        assert classify_host("googleads.g.doubleclick.net") == ServiceCategory.ANALYTICS
        # Matches both fb (social) and cdn.
        assert classify_host("fbcdn.example") == ServiceCategory.SOCIAL


class TestSummarizeRequests:

    def test_first_party_host_excluded(self):
        requests = {
            req("https://example.com/app.js"),
            req("https://ads.example.net/pixel.gif", "image"),
            req("https://static-cdn.io/lib.js"),
        }
        report = summarize_requests(requests, "https://example.com/")

        assert report.total_third_party_hosts == 2
        assert set(report.details) == {"ads.example.net", "static-cdn.io"}
        assert report.details["ads.example.net"].category == ServiceCategory.ADVERTISING
        assert report.details["static-cdn.io"].category == ServiceCategory.CDN
        assert report.category_summary == {
            "analytics": 0, "social": 0, "advertising": 1, "cdn": 1, "unknown": 0,
        }

    def test_request_count_counts_distinct_requests_per_host(self):
        requests = {
            req("https://static-cdn.io/a.js"),
            req("https://static-cdn.io/b.css", "stylesheet"),
            req("https://static-cdn.io/a.js", "script", "POST"),
        }
        service = summarize_requests(requests, "https://example.com").details["static-cdn.io"]

        assert service.request_count == 3
        assert service.resource_types == {"script", "stylesheet"}

    def test_identical_requests_collapse(self):
        requests = {req("https://static-cdn.io/a.js"), req("https://static-cdn.io/a.js")}
        assert summarize_requests(requests, "https://example.com").details["static-cdn.io"].request_count == 1

    def test_no_requests(self):
        report = summarize_requests(set(), "https://example.com")
        assert report.total_third_party_hosts == 0
        assert report.details == {}


class TestNetworkObserver:

    async def test_listener_attached_before_navigation(self):
        page = make_page()
        observer = NetworkObserver(timeout_ms=1000, idle_timeout_ms=100)
        order = []
        page.on.side_effect = lambda event, handler: order.append(("on", event))

        async def goto(url, **kwargs):
            order.append(("goto", url))
            handler = page.on.call_args.args[1]
            handler(pw_request("https://example.com/"))
            handler(pw_request("https://www.google-analytics.com/collect", "xhr", "POST"))
            handler(pw_request("https://cdn.jsdelivr.net/npm/x.js"))

        page.goto.side_effect = goto
        report = await observer.capture_requests(page, "https://example.com/")

        assert order[0] == ("on", "request")
        assert order[1][0] == "goto"
        assert report.total_third_party_hosts == 2
        assert report.details["www.google-analytics.com"].category == ServiceCategory.ANALYTICS
        page.remove_listener.assert_called_once_with("request", observer._on_request)

    async def test_navigation_failure_returns_zero_report(self, caplog):
        page = make_page()
        page.goto.side_effect = RuntimeError("net::ERR_NAME_NOT_RESOLVED")

        report = await NetworkObserver().capture_requests(page, "https://nope.invalid/")

        assert report.total_third_party_hosts == 0
        assert report.details == {}
        assert all(v == 0 for v in report.category_summary.values())
        assert "ERR_NAME_NOT_RESOLVED" in caplog.text
        page.remove_listener.assert_called_once()

    async def test_failed_load_marks_third_party_result_failed(self, config):
        page = make_page()
        page.goto.side_effect = RuntimeError("net::ERR_NAME_NOT_RESOLVED")

        result = await ProbeRunner().run(ThirdPartyProbe(config), FakeSession(page), "https://nope.invalid/")

        assert result.kind == ProbeKind.THIRD_PARTY
        assert result.ok is False
        assert "ERR_NAME_NOT_RESOLVED" in result.error
        assert result.data == ThirdPartyReport.fallback()

    async def test_reachable_page_with_no_third_parties_is_ok(self, config):
        result = await ProbeRunner().run(ThirdPartyProbe(config), FakeSession(make_page()), "https://example.com/")

        assert result.ok is True
        assert result.data.total_third_party_hosts == 0
