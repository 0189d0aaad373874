from datetime import date

import pytest
import requests

from ops_app.core.errors import FetchError
from ops_app.core.models import FilterSpec
from ops_app.core.store_client import DataStoreAPI, encode_filters


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, list(params or []), timeout))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _api(responses, **kw):
    session = FakeSession(responses)
    api = DataStoreAPI("https://db.example.com/", "secret", session=session, timeout=7, **kw)
    return api, session


def test_encode_filters_operators():
    params = encode_filters(
        {
            "start_time_gte": date(2024, 1, 1),
            "status_neq": "Closed",
            "project_id": 3,
            "team": None,
            "user_email": [],
            "priority_in": "High",
            "name_ilike": "*ops*",
        }
    )
    assert params == [
        ("start_time", "gte.2024-01-01"),
        ("status", "neq.Closed"),
        ("project_id", "eq.3"),
        ("priority", "in.(High)"),
        ("name", "ilike.*ops*"),
    ]


def test_encode_filters_quotes_and_sorts_sets():
    assert encode_filters({"name": {"b", "a,c"}}) == [("name", 'in.("a,c",b)')]


def test_headers_and_base_url():
    api, session = _api([FakeResponse(payload=[])])
    assert session.headers["apikey"] == "secret"
    assert session.headers["Authorization"] == "Bearer secret"
    api.select("users")
    url, params, timeout = session.calls[0]
    assert url == "https://db.example.com/rest/v1/users"
    assert ("select", "*") in params
    assert timeout == 7


def test_select_walks_pages_until_short_page():
    api, session = _api(
        [
            FakeResponse(payload=[{"id": 1}, {"id": 2}]),
            FakeResponse(payload=[{"id": 3}, {"id": 4}]),
            FakeResponse(payload=[{"id": 5}]),
        ],
        page_size=2,
    )
    rows = api.select("projects", order=("name", True))
    assert [r["id"] for r in rows] == [1, 2, 3, 4, 5]
    offsets = [dict(params)["offset"] for _, params, _ in session.calls]
    assert offsets == ["0", "2", "4"]
    assert ("order", "name.asc") in session.calls[0][1]


def test_select_honours_limit():
    api, session = _api([FakeResponse(payload=[{"id": 1}, {"id": 2}]), FakeResponse(payload=[{"id": 3}])], page_size=2)
    rows = api.select("projects", limit=3)
    assert len(rows) == 3
    assert dict(session.calls[1][1])["limit"] == "1"


def test_http_error_raises_fetch_error():
    api, _ = _api([FakeResponse(status_code=500, text="boom")])
    with pytest.raises(FetchError, match="500"):
        api.users()


def test_transport_error_raises_fetch_error():
    api, _ = _api([requests.ConnectionError("down")])
    with pytest.raises(FetchError):
        api.teams()


def test_invalid_payloads_raise_fetch_error():
    api, _ = _api([FakeResponse(payload=ValueError("bad json"))])
    with pytest.raises(FetchError, match="invalid JSON"):
        api.projects()
    api, _ = _api([FakeResponse(payload={"message": "not a list"})])
    with pytest.raises(FetchError, match="expected a list"):
        api.projects()


def test_work_logs_query_params():
    api, session = _api([FakeResponse(payload=[])])
    spec = FilterSpec.build(date(2024, 3, 1), date(2024, 3, 31), users=["a@x.io"])
    api.work_logs(spec)
    params = session.calls[0][1]
    assert ("select", "*,project:projects(*)") in params
    assert ("start_time", "gte.2024-03-01") in params
    assert ("start_time", "lte.2024-03-31T23:59:59.999999") in params
    assert ("user_email", "in.(a@x.io)") in params
    assert ("order", "start_time.desc") in params


def test_incidents_query_uses_reported_date():
    api, session = _api([FakeResponse(payload=[])])
    api.incidents(FilterSpec.build(date(2024, 3, 1), date(2024, 3, 2)))
    url, params, _ = session.calls[0]
    assert url.endswith("/uploaded_tickets")
    assert ("reported_date1", "gte.2024-03-01") in params
