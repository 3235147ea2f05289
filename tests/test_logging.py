"""Tests for the per-request logging context."""

from library.logging import (
    add_request_context,
    bind_user_id,
    clear_request_context,
    generate_request_id,
    get_request_id,
    get_user_id,
    set_request_context,
)


class TestRequestContext:
    def teardown_method(self):
        clear_request_context()

    def test_request_id_is_generated(self):
        set_request_context()

        request_id = get_request_id()
        assert request_id is not None
        assert len(request_id) == 14

    def test_ids_are_distinct(self):
        assert generate_request_id() != generate_request_id()

    def test_processor_adds_bound_ids(self):
        set_request_context(request_id="req-1")
        bind_user_id("user-1")

        event = add_request_context(None, "info", {"event": "hello"})

        assert event == {"event": "hello", "request_id": "req-1", "user_id": "user-1"}

    def test_clear(self):
        set_request_context(request_id="req-1", user_id="user-1")
        clear_request_context()

        assert get_request_id() is None
        assert get_user_id() is None
        assert add_request_context(None, "info", {"event": "x"}) == {"event": "x"}
