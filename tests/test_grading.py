"""
Unit tests for the grading model: grade point mapping, status
classification and CGPA projection.
"""
import pytest

from errors import ValidationError
from grading import classify_status, projected_gpa, score_to_grade_point, validate_percentage


class TestScoreToGradePoint:
    """Test the marks to 10 point scale mapping"""

    def test_ninety_is_exactly_nine(self):
        assert score_to_grade_point(90) == 9.0

    @pytest.mark.parametrize('boundary', [50, 60, 70, 80, 90])
    def test_continuous_at_band_boundaries(self, boundary):
        """Value just below a boundary approaches the value at the boundary"""
        below = score_to_grade_point(boundary - 1e-9)
        at = score_to_grade_point(boundary)
        assert at == pytest.approx(boundary / 10)
        assert below == pytest.approx(at, abs=1e-6)

    def test_within_band(self):
        assert score_to_grade_point(55) == pytest.approx(5.5)
        assert score_to_grade_point(91) == pytest.approx(9.1)
        assert score_to_grade_point(82) == pytest.approx(8.2)

    def test_full_marks(self):
        assert score_to_grade_point(100) == pytest.approx(10.0)

    def test_below_forty(self):
        assert score_to_grade_point(38) == pytest.approx(3.8)
        assert score_to_grade_point(0) == 0.0

    def test_never_negative(self):
        assert score_to_grade_point(-5) == 0.0

    def test_monotonic(self):
        values = [score_to_grade_point(m / 4) for m in range(0, 401)]
        assert all(a <= b + 1e-12 for a, b in zip(values, values[1:]))


class TestClassifyStatus:
    """Test the three-tier status rules"""

    def test_low_attendance_beats_high_gpa(self):
        assert classify_status(60, 9.0) == 'At-Risk'

    def test_low_gpa_is_at_risk(self):
        assert classify_status(95, 4.9) == 'At-Risk'

    def test_safe(self):
        assert classify_status(85, 7.5) == 'Safe'

    def test_average_between_thresholds(self):
        assert classify_status(80, 7.4) == 'Average'
        assert classify_status(75, 5.0) == 'Average'
        assert classify_status(84.9, 9.0) == 'Average'

    def test_total(self):
        for attendance in range(0, 101, 5):
            for gpa in [x / 2 for x in range(0, 21)]:
                assert classify_status(attendance, gpa) in ('Safe', 'Average', 'At-Risk')


class TestEndToEnd:
    """Marks and attendance through grade point to status"""

    def test_at_risk_student(self):
        gpa = score_to_grade_point(55)
        assert gpa == pytest.approx(5.5)
        assert classify_status(65, gpa) == 'At-Risk'

    def test_safe_student(self):
        gpa = score_to_grade_point(91)
        assert gpa == pytest.approx(9.1)
        assert classify_status(92, gpa) == 'Safe'


class TestProjectedGpa:
    """Test credit-weighted CGPA projection"""

    def test_weighted_average(self):
        result = projected_gpa(8.0, 20, [{'credits': 4, 'marks': 90}, {'credits': 4, 'marks': 70}])
        assert result == pytest.approx((8.0 * 20 + 9.0 * 4 + 7.0 * 4) / 28)

    def test_no_additions_returns_current(self):
        assert projected_gpa(7.2, 30, []) == pytest.approx(7.2)

    def test_first_semester(self):
        assert projected_gpa(0, 0, [{'credits': 3, 'marks': 80}]) == pytest.approx(8.0)

    def test_zero_total_credits_rejected(self):
        with pytest.raises(ValidationError):
            projected_gpa(0, 0, [])

    def test_out_of_range_marks_rejected(self):
        with pytest.raises(ValidationError):
            projected_gpa(7.0, 10, [{'credits': 3, 'marks': 120}])


class TestValidatePercentage:

    def test_accepts_numeric_strings(self):
        assert validate_percentage('72.5', 'marks') == 72.5

    @pytest.mark.parametrize('value', [-1, 100.01, 'abc', None, float('nan')])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_percentage(value, 'attendance')
