from org_bullets.engine import DecorationSession, initialize
from org_bullets.host import ChangeEvent, InvalidRange
from org_bullets.memory_host import MemoryBuffer, MemoryPaintSurface
from org_bullets.throttle import ChangeThrottle


def _session(lines, **options):
    buffer = MemoryBuffer(lines)
    surface = MemoryPaintSurface(buffer)
    messages = []
    session = initialize(buffer, surface, options, notify=messages.append)
    return buffer, surface, session, messages


def _rendered(buffer, surface):
    return [surface.render_line(index) for index in range(buffer.line_count())]


def _fresh_render(buffer):
    fresh = MemoryBuffer(buffer.read_lines(0, buffer.line_count()))
    fresh_surface = MemoryPaintSurface(fresh)
    initialize(fresh, fresh_surface)
    return _rendered(fresh, fresh_surface)


def _visible_state(session):
    return {line: session.surface.get(overlay_id) for line, overlay_id in session.store.items()}


def _assert_consistent(session, surface):
    painted = surface.overlays()
    assert len(painted) == len(session.store)
    for line, overlay_id in session.store.items():
        assert overlay_id in painted
        assert painted[overlay_id].line == line


SAMPLE = [
    "* Project",
    "** TODO write docs",
    "some prose",
    "- bullet item",
    "  + nested item",
    "- [x] done task",
    "1. [-] partial",
    "*** deep",
]


def test_initialize_decorates_every_matching_line():
    buffer, surface, session, messages = _session(SAMPLE)

    assert session.store.lines() == [0, 1, 3, 4, 5, 6, 7]
    assert messages == []
    assert _rendered(buffer, surface) == [
        "◉ Project",
        " ○ TODO write docs",
        "some prose",
        "• bullet item",
        "  • nested item",
        "- [✓] done task",
        "1. [~] partial",
        "  ✸ deep",
    ]
    _assert_consistent(session, surface)


def test_second_level_headline_overlay_details():
    _buffer, surface, session, _ = _session(["** TODO write docs"])
    snapshot = surface.get(session.store.get(0))
    assert (snapshot.start_col, snapshot.end_col) == (0, 2)
    assert snapshot.glyph == " ○"
    assert snapshot.highlight == "HeadlineLevel2"


def test_resync_all_is_idempotent():
    buffer, surface, session, _ = _session(SAMPLE)
    first = _visible_state(session)
    session.resync_all()
    second = _visible_state(session)
    session.resync_all()

    assert first == second == _visible_state(session)
    assert len(surface.overlays()) == len(session.store)


def test_single_line_edit_only_touches_that_line():
    buffer, surface, session, _ = _session(SAMPLE)
    before = session.store.snapshot()

    event = buffer.set_line(2, "**** promoted")
    session.apply_change(event)

    after = session.store.snapshot()
    assert 2 in after
    assert {line: overlay_id for line, overlay_id in after.items() if line != 2} == before
    assert surface.render_line(2) == "   ✿ promoted"
    _assert_consistent(session, surface)


def test_edit_that_removes_a_decoration():
    buffer, surface, session, _ = _session(SAMPLE)
    session.apply_change(buffer.set_line(3, "bullet removed"))

    assert 3 not in session.store
    assert surface.overlays_on(3) == []
    _assert_consistent(session, surface)


def test_replacing_three_lines_with_two_renumbers_later_entries():
    lines = [f"- item {index}" for index in range(10)]
    buffer, surface, session, _ = _session(lines)
    before = session.store.snapshot()
    surface.reset_counters()

    event = buffer.replace_lines(3, 6, ["- replacement", "plain text"])
    assert event == ChangeEvent(3, 6, 5, event.byte_delta)
    session.apply_change(event)

    after = session.store.snapshot()
    for line in range(3):
        assert after[line] == before[line]
    for line in range(6, 10):
        assert after[line - 1] == before[line]
    assert after[3] not in before.values()
    assert 4 not in after
    assert 9 not in after
    assert surface.paint_calls == 1
    _assert_consistent(session, surface)
    assert _rendered(buffer, surface) == _fresh_render(buffer)


def test_inserting_lines_shifts_later_entries():
    buffer, surface, session, _ = _session(SAMPLE)
    before = session.store.snapshot()

    session.apply_change(buffer.replace_lines(2, 2, ["- inserted", "* inserted head"]))

    after = session.store.snapshot()
    assert after[0] == before[0] and after[1] == before[1]
    for line in (3, 4, 5, 6, 7):
        assert after[line + 2] == before[line]
    assert 2 in after and 3 in after
    _assert_consistent(session, surface)
    assert _rendered(buffer, surface) == _fresh_render(buffer)


def test_deleting_trailing_lines_leaves_no_stale_keys():
    buffer, surface, session, _ = _session(SAMPLE)

    session.apply_change(buffer.replace_lines(4, 8, []))

    assert max(session.store.lines()) < buffer.line_count()
    session.resync_all()
    assert max(session.store.lines()) < buffer.line_count()
    _assert_consistent(session, surface)


def test_zero_length_change_is_a_noop():
    _buffer, surface, session, _ = _session(SAMPLE)
    before = session.store.snapshot()
    surface.reset_counters()

    session.resync_range(3, 3, 3, 0)
    session.apply_change(ChangeEvent(5, 5, 5, 0))

    assert surface.paint_calls == 0
    assert surface.unpaint_calls == 0
    assert session.store.snapshot() == before


def test_change_range_past_buffer_end_is_clamped():
    buffer, surface, session, _ = _session(SAMPLE)
    buffer.replace_lines(6, 8, [])

    # A stale event describing lines the buffer no longer has.
    session.resync_range(5, 8, 8)

    assert max(session.store.lines()) < buffer.line_count()
    _assert_consistent(session, surface)


class _RejectingSurface(MemoryPaintSurface):
    def __init__(self, buffer, reject_line):
        super().__init__(buffer)
        self.reject_line = reject_line

    def paint(self, line, start_col, end_col, glyph, highlight):
        if line == self.reject_line:
            raise InvalidRange(line, start_col, end_col, "rejected")
        return super().paint(line, start_col, end_col, glyph, highlight)


def test_invalid_range_is_reported_and_pass_continues(caplog):
    buffer = MemoryBuffer(SAMPLE)
    surface = _RejectingSurface(buffer, reject_line=1)
    messages = []

    session = initialize(buffer, surface, notify=messages.append)

    assert 1 not in session.store
    assert session.store.lines() == [0, 3, 4, 5, 6, 7]
    assert len(messages) == 1
    assert "line=1" in messages[0]
    assert any(record.levelname == "WARNING" for record in caplog.records)


def test_failed_line_is_decorated_on_next_edit():
    buffer = MemoryBuffer(SAMPLE)
    surface = _RejectingSurface(buffer, reject_line=1)
    session = initialize(buffer, surface)
    surface.reject_line = None

    session.apply_change(buffer.set_line(1, "** TODO write docs"))

    assert 1 in session.store


def test_broken_message_sink_does_not_abort_decoration():
    buffer = MemoryBuffer(SAMPLE)
    surface = _RejectingSurface(buffer, reject_line=0)

    def sink(_message):
        raise RuntimeError("status bar gone")

    session = DecorationSession(buffer, surface, notify=sink)
    session.resync_all()

    assert session.store.lines() == [1, 3, 4, 5, 6, 7]


def test_decorate_line_replaces_prior_overlay():
    buffer, surface, session, _ = _session(SAMPLE)
    first_id = session.store.get(0)

    second_id = session.decorate_line(0, buffer.line(0))

    assert second_id != first_id
    assert session.store.get(0) == second_id
    assert surface.get(first_id) is None
    assert len(surface.overlays_on(0)) == 1


def test_decorate_line_without_match_is_a_noop():
    buffer, surface, session, _ = _session(SAMPLE)
    surface.reset_counters()

    assert session.decorate_line(2, "still prose") is None
    assert surface.paint_calls == 0
    assert 2 not in session.store


def test_coalesced_edits_match_a_full_resync():
    buffer, surface, session, _ = _session(SAMPLE)
    armed = []
    throttle = ChangeThrottle(session.apply_change, interval_ms=50)
    throttle.configure_timeout_hooks(arm_timeout=armed.append, cancel_timeout=lambda: None)
    buffer.add_listener(throttle.submit)

    buffer.replace_lines(1, 2, ["** DONE write docs", "- [ ] new task"])
    buffer.replace_lines(6, 7, [])
    buffer.set_line(0, "plain title")
    buffer.replace_lines(9, 9, ["  * trailing bullet"])
    assert armed == [50]

    throttle.handle_timeout()

    assert throttle.pending is None
    assert _rendered(buffer, surface) == _fresh_render(buffer)
    _assert_consistent(session, surface)


def test_rejected_repaint_removes_previous_overlay():
    buffer = MemoryBuffer(["* Head"])
    surface = _RejectingSurface(buffer, reject_line=None)
    messages = []
    session = initialize(buffer, surface, notify=messages.append)
    assert session.store.lines() == [0]

    surface.reject_line = 0
    assert session.decorate_line(0, "** Head") is None

    assert 0 not in session.store
    assert surface.overlays_on(0) == []
    assert len(messages) == 1
    assert "line=0" in messages[0]


def test_headless_host_is_exported():
    import org_bullets

    buffer = org_bullets.MemoryBuffer.from_text("* Title\n- item")
    surface = org_bullets.MemoryPaintSurface(buffer)
    org_bullets.initialize(buffer, surface)

    assert surface.render_line(0) == "◉ Title"
    assert surface.render_line(1) == "• item"
