import pytest

from fizzy_pop.agent import Agent, is_mentioned, should_forward
from fizzy_pop.breadcrumbs import BreadcrumbTrail
from fizzy_pop.delivery import DeliveryQueue
from fizzy_pop.fizzy import FizzyApiError
from fizzy_pop.notifications import Creator, Notification


class FakeFizzy:
    def __init__(self, identity=None, notifications=None, fail_mark_read=False):
        self._identity = identity
        self._notifications = notifications or {}
        self.fail_mark_read = fail_mark_read
        self.marked = []
        self.fetched = []

    def identity(self):
        if isinstance(self._identity, Exception):
            raise self._identity
        return self._identity

    def notifications(self, slug):
        self.fetched.append(slug)
        val = self._notifications.get(slug, [])
        if isinstance(val, Exception):
            raise val
        return val

    def mark_read(self, slug, notification_id):
        self.marked.append((slug, notification_id))
        if self.fail_mark_read:
            raise FizzyApiError("Mark read", 500, "boom")


def _notif(nid, creator_id=2, creator_name="bob", body="please check", read=False):
    creator = None if creator_id is None else {"id": creator_id, "name": creator_name}
    return {
        "id": nid,
        "read": read,
        "creator": creator,
        "title": "Fix login",
        "body": body,
        "card": {"url": "https://app.fizzy.do/123/cards/42"},
    }


def _agent(name, notifications, dry_run=False, fail_mark_read=False, slugs=("/123",)):
    client = FakeFizzy(
        identity={"accounts": [{"slug": s, "user": {"id": 1}} for s in slugs]},
        notifications=notifications,
        fail_mark_read=fail_mark_read,
    )
    agent = Agent(name, client, dry_run=dry_run)
    agent.fetch_identity(BreadcrumbTrail())
    return agent, client


def test_fetch_identity_sets_accounts_and_user_id():
    client = FakeFizzy(
        identity={
            "accounts": [
                {"slug": "/1", "user": {"id": "u1"}},
                {"slug": "/2", "user": {"id": "u2"}},
            ]
        }
    )
    trail = BreadcrumbTrail()
    agent = Agent("alice", client).fetch_identity(trail)
    assert agent.active is True
    assert agent.user_id == "u1"
    assert [a["slug"] for a in agent.accounts] == ["/1", "/2"]
    assert trail.steps == ["begin", "get_identity:alice"]


def test_fetch_identity_failure_marks_inactive():
    agent = Agent("alice", FakeFizzy(identity=FizzyApiError("Identity", 401)))
    agent.fetch_identity(BreadcrumbTrail())
    assert agent.active is False
    assert agent.user_id is None


def test_fetch_identity_without_accounts_is_inactive():
    agent = Agent("alice", FakeFizzy(identity={"accounts": []}))
    agent.fetch_identity(BreadcrumbTrail())
    assert agent.active is False


def test_system_notification_is_marked_read_but_not_enqueued():
    agent, client = _agent("alice", {"/123": [_notif("n1", creator_id=None)]})
    q = DeliveryQueue()
    assert agent.poll_cycle(q, frozenset({1, 2}), BreadcrumbTrail()) == 0
    assert len(q) == 0
    assert client.marked == [("/123", "n1")]


def test_bot_notification_without_mention_is_suppressed():
    agent, _ = _agent("alice", {"/123": [_notif("n1", creator_id=2, body="please check")]})
    q = DeliveryQueue()
    agent.poll_cycle(q, frozenset({1, 2}), BreadcrumbTrail())
    assert len(q) == 0


@pytest.mark.parametrize("body", ["@alice please check", "@ALICE look", "hey @Alice!"])
def test_bot_notification_with_mention_is_delivered(body):
    agent, _ = _agent("alice", {"/123": [_notif("n1", creator_id=2, body=body)]})
    q = DeliveryQueue()
    assert agent.poll_cycle(q, frozenset({1, 2}), BreadcrumbTrail()) == 1
    [item] = q.drain()
    assert item.agent_name == "alice"
    assert "From: bob (2)" in item.message
    assert "Card: 42" in item.message


def test_human_notification_is_delivered():
    agent, _ = _agent("alice", {"/123": [_notif("n1", creator_id=99, creator_name="carol")]})
    q = DeliveryQueue()
    agent.poll_cycle(q, frozenset({1, 2}), BreadcrumbTrail())
    [item] = q.drain()
    assert "From: carol (99)" in item.message


def test_only_first_unread_is_processed_per_account():
    notifs = [
        _notif("n0", creator_id=99, read=True),
        _notif("n1", creator_id=99, body="first"),
        _notif("n2", creator_id=99, body="second"),
    ]
    agent, client = _agent("alice", {"/123": notifs})
    q = DeliveryQueue()
    agent.poll_cycle(q, frozenset(), BreadcrumbTrail())
    items = q.drain()
    assert len(items) == 1
    assert "Message: first" in items[0].message
    assert client.marked == [("/123", "n1")]


def test_all_read_enqueues_nothing():
    agent, client = _agent("alice", {"/123": [_notif("n1", read=True)]})
    q = DeliveryQueue()
    assert agent.poll_cycle(q, frozenset(), BreadcrumbTrail()) == 0
    assert client.marked == []


def test_dry_run_never_marks_read_but_still_enqueues():
    agent, client = _agent("alice", {"/123": [_notif("n1", creator_id=99)]}, dry_run=True)
    q = DeliveryQueue()
    trail = BreadcrumbTrail()
    agent.poll_cycle(q, frozenset(), trail)
    assert client.marked == []
    assert len(q) == 1
    assert "read_notification:alice" not in trail.steps


def test_mark_read_failure_does_not_block_delivery():
    agent, client = _agent("alice", {"/123": [_notif("n1", creator_id=99)]}, fail_mark_read=True)
    q = DeliveryQueue()
    assert agent.poll_cycle(q, frozenset(), BreadcrumbTrail()) == 1
    assert client.marked == [("/123", "n1")]


def test_fetch_failure_skips_only_that_account():
    agent, client = _agent(
        "alice",
        {
            "/bad": FizzyApiError("Notifications", 500, "Internal Server Error"),
            "/good": [_notif("n1", creator_id=99)],
        },
        slugs=("/bad", "/good"),
    )
    q = DeliveryQueue()
    trail = BreadcrumbTrail()
    assert agent.poll_cycle(q, frozenset(), trail) == 1
    assert client.fetched == ["/bad", "/good"]
    assert client.marked == [("/good", "n1")]
    assert trail.steps == [
        "begin",
        "get_notifications:alice",
        "get_notifications:alice",
        "read_notification:alice",
    ]


def test_malformed_entries_are_skipped():
    agent, _ = _agent("alice", {"/123": ["junk", {"read": False}, _notif("n1", creator_id=99)]})
    q = DeliveryQueue()
    assert agent.poll_cycle(q, frozenset(), BreadcrumbTrail()) == 1


def test_scenario_alice_and_bob():
    registry = frozenset({1, 2})
    n = Notification(
        id="n1", read=False, creator=Creator(id=2, name="bob"), body="please check"
    )
    assert should_forward(n, "alice", registry) is False
    mentioned = Notification(
        id="n1", read=False, creator=Creator(id=2, name="bob"), body="@alice please check"
    )
    assert should_forward(mentioned, "alice", registry) is True


def test_registry_matches_ids_across_json_types():
    n = Notification(id="n1", read=False, creator=Creator(id="2", name="bob"))
    assert should_forward(n, "alice", frozenset({2})) is False


def test_is_mentioned():
    assert is_mentioned("ping @Bob", "bob") is True
    assert is_mentioned("ping bob", "bob") is False
    assert is_mentioned(None, "bob") is False


@pytest.mark.parametrize("user", ["u1", ["u1"], 5])
def test_fetch_identity_tolerates_non_object_user(user):
    client = FakeFizzy(identity={"accounts": [{"slug": "/1", "user": user}]})
    agent = Agent("alice", client).fetch_identity(BreadcrumbTrail())
    assert agent.active is True
    assert agent.user_id is None
