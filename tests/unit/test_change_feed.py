from installmod.adapters.change_feed import InMemoryChangeFeed


def test_delivers_to_matching_subscribers():
    feed = InMemoryChangeFeed()
    seen, other = [], []
    feed.subscribe("games", "1", seen.append)
    feed.subscribe("games", "2", other.append)

    feed.publish("games", "1", {"id": "1", "icon_bg_color": "#000000"})

    assert seen == [{"id": "1", "icon_bg_color": "#000000"}]
    assert other == []


def test_unsubscribe():
    feed = InMemoryChangeFeed()
    seen = []
    unsubscribe = feed.subscribe("apps", "1", seen.append)
    assert feed.subscriber_count("apps", "1") == 1

    unsubscribe()
    unsubscribe()
    feed.publish("apps", "1", {"id": "1"})

    assert seen == []
    assert feed.subscriber_count("apps", "1") == 0


def test_failing_handler_does_not_stop_others(caplog):
    feed = InMemoryChangeFeed()
    seen = []

    def broken(row):
        raise RuntimeError("boom")

    feed.subscribe("apps", "1", broken)
    feed.subscribe("apps", "1", seen.append)
    feed.publish("apps", "1", {"id": "1"})

    assert seen == [{"id": "1"}]
    assert "Change handler failed" in caplog.text


def test_handlers_get_a_copy():
    feed = InMemoryChangeFeed()
    row = {"id": "1"}
    feed.subscribe("apps", "1", lambda r: r.update(id="mutated"))
    feed.publish("apps", "1", row)
    assert row == {"id": "1"}
