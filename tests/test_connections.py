from scorewise.assistant.connections import ConnectionRegistry


def test_add_and_remove_single_connection():
    registry = ConnectionRegistry()
    registry.add("user_a", "sock_1")

    assert registry.is_online("user_a")
    assert registry.online_users() == ["user_a"]

    assert registry.remove("user_a", "sock_1") is True
    assert not registry.is_online("user_a")
    assert registry.online_users() == []
    assert len(registry) == 0


def test_user_stays_online_until_last_connection_closes():
    registry = ConnectionRegistry()
    registry.add("user_a", "tab_1")
    registry.add("user_a", "tab_2")

    registry.remove("user_a", "tab_1")

    assert registry.is_online("user_a")
    assert registry.connections_for("user_a") == frozenset({"tab_2"})


def test_remove_without_connection_id_drops_everything():
    registry = ConnectionRegistry()
    registry.add("user_a", "tab_1")
    registry.add("user_a", "tab_2")

    assert registry.remove("user_a") is True
    assert registry.connections_for("user_a") == frozenset()


def test_removing_unknown_entries_is_a_no_op():
    registry = ConnectionRegistry()
    registry.add("user_a", "tab_1")

    assert registry.remove("user_b") is False
    assert registry.remove("user_a", "tab_9") is False
    assert registry.is_online("user_a")


def test_registries_are_independent():
    first = ConnectionRegistry()
    second = ConnectionRegistry()
    first.add("user_a", "tab_1")

    assert second.online_users() == []


def test_online_users_sorted():
    registry = ConnectionRegistry()
    for user in ("zed", "amy", "kim"):
        registry.add(user, f"{user}-sock")

    assert registry.online_users() == ["amy", "kim", "zed"]
