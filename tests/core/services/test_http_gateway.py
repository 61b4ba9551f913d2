from unittest.mock import Mock

import pytest
import requests

from pagetree_toolkit.config import GatewaySettings
from pagetree_toolkit.core.exceptions import GatewayError, TreeIntegrityError
from pagetree_toolkit.core.models import APPEND_ORDER, PageMutation
from pagetree_toolkit.core.services.http_gateway import HttpPageGateway

BASE = "https://kb.example.com"


def make_response(status=200, payload=None, json_error=False):
    response = Mock(spec=requests.Response)
    response.status_code = status
    if json_error:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def session():
    s = Mock(spec=requests.Session)
    s.headers = {}
    return s


def test_requires_base_url():
    with pytest.raises(ValueError):
        HttpPageGateway("")


def test_token_sets_bearer_header(session):
    HttpPageGateway(BASE + "/", token="secret", session=session)
    assert session.headers["Authorization"] == "Bearer secret"


def test_from_settings_reads_token_env(monkeypatch):
    monkeypatch.setenv("KB_TOKEN", "abc")
    gateway = HttpPageGateway.from_settings(GatewaySettings(base_url=BASE, timeout_seconds=3, token_env="KB_TOKEN"))
    assert gateway.timeout == 3
    assert gateway.session.headers["Authorization"] == "Bearer abc"


def test_fetch_tree_builds_snapshot(session):
    session.get.return_value = make_response(payload=[
        {"_id": "p1", "title": "Home", "order": 0, "children": [{"_id": "p2", "title": "Child", "order": 0}]},
        {"_id": "p3", "title": "Other", "order": 1, "sectionId": "s1"},
    ])
    gateway = HttpPageGateway(BASE, session=session, timeout=5)
    tree = gateway.fetch_tree()
    session.get.assert_called_once_with(f"{BASE}/api/knowledge-base/pages", timeout=5)
    assert [n.id for n in tree] == ["p1", "p2", "p3"]
    assert tree.get("p2").parent_id == "p1"
    assert tree.get("p3").section_id == "s1"


def test_fetch_tree_accepts_wrapped_payload(session):
    session.get.return_value = make_response(payload={"pages": [{"_id": "only", "order": 0}]})
    tree = HttpPageGateway(BASE, session=session).fetch_tree()
    assert len(tree) == 1


def test_fetch_tree_http_error(session):
    session.get.return_value = make_response(status=503)
    with pytest.raises(GatewayError) as exc:
        HttpPageGateway(BASE, session=session).fetch_tree()
    assert exc.value.status_code == 503


def test_fetch_tree_network_error(session):
    session.get.side_effect = requests.ConnectionError("down")
    with pytest.raises(GatewayError) as exc:
        HttpPageGateway(BASE, session=session).fetch_tree()
    assert isinstance(exc.value.cause, requests.ConnectionError)


def test_fetch_tree_bad_payloads(session):
    session.get.return_value = make_response(json_error=True)
    with pytest.raises(GatewayError):
        HttpPageGateway(BASE, session=session).fetch_tree()
    session.get.return_value = make_response(payload="nope")
    with pytest.raises(GatewayError):
        HttpPageGateway(BASE, session=session).fetch_tree()


def test_commit_sends_reorder_body(session):
    session.put.return_value = make_response(payload={"ok": True})
    gateway = HttpPageGateway(BASE, session=session, timeout=7)
    result = gateway.commit(PageMutation("p3", APPEND_ORDER, None, "s2"))
    assert result.success
    session.put.assert_called_once_with(
        f"{BASE}/api/knowledge-base/pages/p3/reorder",
        json={"newOrder": APPEND_ORDER, "newParentPage": None, "sectionId": "s2"},
        timeout=7,
    )


def test_commit_failure_uses_server_message(session):
    session.put.return_value = make_response(status=400, payload={"message": "Cannot nest deeper"})
    result = HttpPageGateway(BASE, session=session).commit(PageMutation("p1", 0, "p2", None))
    assert not result.success
    assert result.message == "Cannot nest deeper"
    assert result.details == {"status_code": 400}


def test_commit_failure_without_body(session):
    session.put.return_value = make_response(status=500, json_error=True)
    result = HttpPageGateway(BASE, session=session).commit(PageMutation("p1", 0, None, None))
    assert not result.success
    assert "HTTP 500" in result.message


def test_commit_network_error_never_raises(session):
    session.put.side_effect = requests.Timeout("slow")
    result = HttpPageGateway(BASE, session=session).commit(PageMutation("p1", 0, None, None))
    assert not result.success
    assert "network" in result.message


def test_fetch_tree_cyclic_payload_is_gateway_error(session):
    session.get.return_value = make_response(payload=[
        {"_id": "a", "parentPage": "b", "order": 0},
        {"_id": "b", "parentPage": "a", "order": 0},
    ])
    with pytest.raises(GatewayError) as exc:
        HttpPageGateway(BASE, session=session).fetch_tree()
    assert isinstance(exc.value.cause, TreeIntegrityError)


def test_fetch_tree_duplicate_ids_is_gateway_error(session):
    session.get.return_value = make_response(payload=[{"_id": "a"}, {"_id": "a"}])
    with pytest.raises(GatewayError):
        HttpPageGateway(BASE, session=session).fetch_tree()


def test_fetch_tree_non_record_items_is_gateway_error(session):
    session.get.return_value = make_response(payload=[{"_id": "a"}, 42])
    with pytest.raises(GatewayError) as exc:
        HttpPageGateway(BASE, session=session).fetch_tree()
    assert isinstance(exc.value.cause, AttributeError)
