"""Tests for slot generation, working-hours parsing and display times."""

from datetime import date, time

import pytest

from tradetrack.scheduling.slots import (
    ProviderAvailability,
    build_booking_slot,
    default_slots,
    effective_window,
    format_time,
    generate_slots,
    parse_hours,
    parse_time,
)

WINDOWS = [(0, 1), (6, 12), (8, 16), (9, 17), (12, 13), (20, 23)]


class TestGenerateSlots:
    def test_nine_to_five_has_sixteen_slots(self):
        slots = generate_slots(ProviderAvailability(9, 17))
        assert len(slots) == 16
        assert slots[0] == time(9, 0)
        assert slots[-1] == time(16, 30)

    def test_half_hour_steps(self):
        slots = generate_slots(ProviderAvailability(9, 11))
        assert [format_time(s) for s in slots] == ["9:00 AM", "9:30 AM", "10:00 AM", "10:30 AM"]

    @pytest.mark.parametrize("start,end", WINDOWS)
    def test_every_slot_inside_window(self, start, end):
        for slot in generate_slots(ProviderAvailability(start, end)):
            assert start <= slot.hour < end

    @pytest.mark.parametrize("start,end", WINDOWS)
    def test_slots_are_ordered_and_unique(self, start, end):
        slots = generate_slots(ProviderAvailability(start, end))
        assert slots == sorted(set(slots))

    def test_duration_does_not_change_density(self):
        window = ProviderAvailability(9, 17)
        assert generate_slots(window, 3.0) == generate_slots(window, 1.0)

    def test_one_hour_window(self):
        assert generate_slots(ProviderAvailability(22, 23)) == [time(22, 0), time(22, 30)]


class TestFallbackWindow:
    @pytest.mark.parametrize("start,end", [(17, 9), (9, 9), (-1, 10), (9, 24), (30, 40)])
    def test_malformed_window_uses_fallback(self, start, end):
        slots = generate_slots(ProviderAvailability(start, end))
        assert slots
        assert slots == generate_slots(ProviderAvailability(9, 17))

    def test_well_formed_window_kept(self):
        window = ProviderAvailability(8, 16)
        assert effective_window(window) == window

    def test_default_slots_are_hourly_nine_to_four(self):
        slots = default_slots()
        assert len(slots) == 8
        assert slots[0] == time(9, 0)
        assert slots[-1] == time(16, 0)


class TestParseHours:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("9-17", (9, 17)),
            ("9 AM - 5 PM", (9, 17)),
            ("8am-4pm", (8, 16)),
            ("10:00-18:00", (10, 18)),
            ("7 to 15", (7, 15)),
            ("12 PM - 8 PM", (12, 20)),
        ],
    )
    def test_readable_ranges(self, text, expected):
        window = parse_hours(text)
        assert (window.start_hour, window.end_hour) == expected

    def test_twelve_hour_range_without_meridiem_is_inverted(self):
        window = parse_hours("9-5")
        assert (window.start_hour, window.end_hour) == (9, 5)
        assert not window.is_well_formed()

    @pytest.mark.parametrize("text", [None, "", "Mon-Fri", "by appointment"])
    def test_unreadable_text_uses_fallback(self, text):
        window = parse_hours(text)
        assert (window.start_hour, window.end_hour) == (9, 17)


class TestDisplayTime:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (time(0, 0), "12:00 AM"),
            (time(9, 0), "9:00 AM"),
            (time(9, 30), "9:30 AM"),
            (time(12, 0), "12:00 PM"),
            (time(16, 30), "4:30 PM"),
            (time(23, 30), "11:30 PM"),
        ],
    )
    def test_format_time(self, value, expected):
        assert format_time(value) == expected

    def test_parse_time_accepts_lowercase_and_spaces(self):
        assert parse_time("  10:30 am ") == time(10, 30)

    def test_parse_midnight_and_noon(self):
        assert parse_time("12:00 AM") == time(0, 0)
        assert parse_time("12:00 PM") == time(12, 0)

    @pytest.mark.parametrize("text", ["", "10:00", "25:00 PM", "13:00 PM", "9:75 AM", "noon"])
    def test_parse_time_rejects_invalid(self, text):
        with pytest.raises(ValueError):
            parse_time(text)


class TestBookingSlot:
    def test_end_time_from_duration(self):
        slot = build_booking_slot(date(2025, 3, 15), time(10, 0), 1.5, ProviderAvailability(9, 17))
        assert slot.end == time(11, 30)
        assert not slot.overruns_window

    def test_ending_at_close_is_not_overrun(self):
        slot = build_booking_slot(date(2025, 3, 15), time(15, 0), 2.0, ProviderAvailability(9, 17))
        assert slot.end == time(17, 0)
        assert not slot.overruns_window

    def test_long_job_late_in_day_overruns(self):
        slot = build_booking_slot(date(2025, 3, 15), time(16, 30), 3.0, ProviderAvailability(9, 17))
        assert slot.end == time(19, 30)
        assert slot.overruns_window
