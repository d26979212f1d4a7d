"""
Unit tests for early-warning indicators
"""
from early_warning import evaluate, flag_students


def make(attendance=90, gpa=8.0, absent=False):
    return {'id': 'x', 'name': 'X', 'attendance': attendance, 'gpa': gpa, 'absent_flag': absent}


class TestEvaluate:

    def test_no_indicators_for_healthy_student(self):
        assert evaluate(make()) == []

    def test_all_indicators_in_fixed_order(self):
        kinds = [i['kind'] for i in evaluate(make(attendance=60, gpa=4.0, absent=True))]
        assert kinds == ['low_attendance', 'exam_absence', 'declining_performance']

    def test_independent_conditions(self):
        assert [i['kind'] for i in evaluate(make(gpa=5.4))] == ['declining_performance']
        assert [i['kind'] for i in evaluate(make(absent=True))] == ['exam_absence']
        assert [i['kind'] for i in evaluate(make(attendance=74.9))] == ['low_attendance']

    def test_thresholds_are_strict(self):
        assert evaluate(make(attendance=75, gpa=5.5)) == []

    def test_missing_absent_flag_treated_as_false(self):
        student = {'attendance': 90, 'gpa': 8.0}
        assert evaluate(student) == []

    def test_messages(self):
        messages = [i['message'] for i in evaluate(make(attendance=50, gpa=3.0, absent=True))]
        assert messages == ['Low attendance', 'Absent in exam', 'Declining performance']


class TestFlagStudents:

    def test_flags_seed_cohort_in_order(self, students):
        flagged = flag_students(students)
        ids = [s['id'] for s, _ in flagged]
        # s1 (65%), s3, s5 (74%), s7, s8, s10 have low attendance or low gpa
        assert ids == ['s1', 's3', 's5', 's7', 's8', 's10']
        assert all(indicators for _, indicators in flagged)
