import pytest

from windbarb.services.wind.math_utils import circular_mean, mean_value, median_value


def test_circular_mean_wraps_across_north():
    assert circular_mean([350.0, 10.0]) == pytest.approx(0.0, abs=1e-6)
    assert circular_mean([355.0, 5.0, 0.0]) == pytest.approx(0.0, abs=1e-6)


def test_circular_mean_of_equal_angles_is_that_angle():
    assert circular_mean([90.0, 90.0, 90.0]) == pytest.approx(90.0)
    assert circular_mean([270.0]) == pytest.approx(270.0)


def test_circular_mean_of_neighbouring_angles():
    assert circular_mean([80.0, 100.0]) == pytest.approx(90.0)
    assert circular_mean([340.0, 350.0, 360.0]) == pytest.approx(350.0)


def test_circular_mean_stays_in_compass_range():
    for angles in ([359.9, 359.8], [0.0, 359.999999], [181.0, 179.0], [10.0, 20.0, 350.0]):
        value = circular_mean(angles)
        assert 0.0 <= value < 360.0


def test_circular_mean_of_cancelling_angles_is_zero():
    assert circular_mean([0.0, 90.0, 180.0, 270.0]) == 0.0
    assert circular_mean([45.0, 225.0]) == 0.0


def test_circular_mean_ignores_missing_values_and_handles_empty_input():
    assert circular_mean([]) is None
    assert circular_mean([None, None]) is None
    assert circular_mean([None, 90.0]) == pytest.approx(90.0)


def test_median_value_is_the_upper_median():
    assert median_value([3.0, 1.0, 2.0]) == 2.0
    assert median_value([1.0, 2.0, 3.0, 4.0]) == 3.0
    assert median_value([5.0, 1.0, 100.0]) == 5.0


def test_median_and_mean_skip_missing_values():
    assert median_value([None, 4.0, None]) == 4.0
    assert median_value([None]) is None
    assert mean_value([2.0, None, 4.0]) == 3.0
    assert mean_value([]) is None
