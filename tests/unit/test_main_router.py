import json

import pytest

from supportdesk.handlers import main


def route(method, path):
    return {"requestContext": {"http": {"method": method, "path": path}}}


def test_main_routes_health(monkeypatch):
    monkeypatch.setattr(main, "ROUTE_TABLE", (("GET", main.re.compile("^/health/?$"), lambda e, c: {"status": "ok"}),))
    resp = main.lambda_handler(route("GET", "/health"), None)
    assert resp["status"] == "ok"


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("GET", "/tickets", "list_handler"),
        ("POST", "/tickets", "create_handler"),
        ("POST", "/tickets/triage", "triage_handler"),
        ("GET", "/tickets/meta/tags", "all_tags_handler"),
        ("GET", "/tickets/meta/macros", "macros_handler"),
        ("GET", "/tickets/12", "get_handler"),
        ("GET", "/tickets/12/messages", "messages_handler"),
        ("POST", "/tickets/12/messages", "reply_handler"),
        ("POST", "/tickets/12/status", "status_handler"),
        ("POST", "/tickets/12/tags", "tag_handler"),
        ("POST", "/tickets/12/csat", "csat_handler"),
    ],
)
def test_ticket_routes(method, path, expected):
    handler = next(h for m, p, h in main.ROUTE_TABLE if m == method and p.match(path))
    assert handler.__name__ == expected


def test_path_parameters_are_extracted(monkeypatch):
    seen = {}

    def fake_handler(event, context):
        seen.update(event["pathParameters"])
        return {"statusCode": 200}

    table = tuple(
        (m, p, fake_handler) if m == "POST" and p.pattern.startswith("^/tickets/(?P<id>") else (m, p, h)
        for m, p, h in main.ROUTE_TABLE
    )
    monkeypatch.setattr(main, "ROUTE_TABLE", table)
    resp = main.lambda_handler(route("POST", "/tickets/42/tags"), None)

    assert resp["statusCode"] == 200
    assert seen == {"id": "42"}


def test_meta_routes_win_over_ticket_id():
    handler = next(h for m, p, h in main.ROUTE_TABLE if m == "GET" and p.match("/tickets/meta/analytics"))
    assert handler is main.analytics.lambda_handler


def test_trailing_slash_is_accepted():
    assert any(p.match("/kb/articles/") for m, p, h in main.ROUTE_TABLE if m == "GET")


def test_main_unknown_route():
    resp = main.lambda_handler(route("GET", "/unknown"), None)
    assert resp["statusCode"] == 404
    body = json.loads(resp["body"])
    assert body["message"] == "Route not found"
    assert body["route"] == "GET /unknown"


def test_wrong_method_is_not_found():
    resp = main.lambda_handler(route("PUT", "/tickets"), None)
    assert resp["statusCode"] == 404
