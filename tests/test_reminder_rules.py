from datetime import datetime

import pytz

from gymhub.services.reminder import (
    is_reminder_due, offset_to_minutes, reminder_subject, reminder_type_for,
)

NY = pytz.timezone("America/New_York")


def local(*args):
    return NY.localize(datetime(*args))


class TestReminderTypes:

    def test_day_offsets(self):
        assert reminder_type_for(1) == "1_day"
        assert reminder_type_for(7) == "7_day"
        assert reminder_type_for(3.0) == "3_day"

    def test_fraction_rounds_to_five_minutes(self):
        # 0.02 días = 28.8 minutos
        assert offset_to_minutes(0.02) == 30
        assert reminder_type_for(0.02) == "30_min"
        assert offset_to_minutes(0.0416) == 60

    def test_minimum_is_five_minutes(self):
        assert offset_to_minutes(0.0001) == 5

    def test_subjects(self):
        assert reminder_subject("1_day") == "Es mañana"
        assert reminder_subject("30_min") == "Empieza pronto"
        assert reminder_subject("45_min") == "Recordatorio"


class TestIsReminderDue:

    start = local(2026, 12, 7, 6, 0)

    def test_day_offset_due_all_day_before(self):
        assert is_reminder_due(1, self.start, local(2026, 12, 6, 0, 1), 5)
        assert is_reminder_due(1, self.start, local(2026, 12, 6, 23, 59), 5)
        assert not is_reminder_due(1, self.start, local(2026, 12, 5, 23, 59), 5)
        assert not is_reminder_due(1, self.start, local(2026, 12, 7, 5, 0), 5)

    def test_minute_offset_window(self):
        assert is_reminder_due(0.02, self.start, local(2026, 12, 7, 5, 25), 5)
        assert is_reminder_due(0.02, self.start, local(2026, 12, 7, 5, 30), 5)
        assert is_reminder_due(0.02, self.start, local(2026, 12, 7, 5, 35), 5)
        assert not is_reminder_due(0.02, self.start, local(2026, 12, 7, 5, 20), 5)
        assert not is_reminder_due(0.02, self.start, local(2026, 12, 7, 5, 40), 5)

    def test_never_after_start(self):
        assert not is_reminder_due(0.001, self.start, local(2026, 12, 7, 6, 2), 5)
        assert not is_reminder_due(0.02, self.start, local(2026, 12, 7, 6, 0), 5)
