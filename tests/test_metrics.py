import pytest

from prreview.metrics import PR_LIFECYCLE_DURATION_HOURS, Histogram


def parse(text):
    values = {}
    for line in text.splitlines():
        if line.startswith("#"):
            continue
        key, value = line.rsplit(" ", 1)
        values[key] = float(value)
    return values


def make():
    return Histogram("pr_lifecycle_duration_hours", "help", [1, 6, 12, 24, 48, 72, 168])


def test_module_histogram_header():
    text = PR_LIFECYCLE_DURATION_HOURS.render()
    lines = text.splitlines()
    assert lines[0] == "# HELP pr_lifecycle_duration_hours Time from PR creation to merge in hours"
    assert lines[1] == "# TYPE pr_lifecycle_duration_hours histogram"
    assert 'pr_lifecycle_duration_hours_bucket{le="168"}' in text


def test_empty_histogram_counts_zero():
    values = parse(make().render())
    assert values["pr_lifecycle_duration_hours_count"] == 0
    assert values['pr_lifecycle_duration_hours_bucket{le="+Inf"}'] == 0


def test_buckets_are_cumulative():
    hist = make()
    for value in (0.5, 3, 200):
        hist.observe(value)
    values = parse(hist.render())
    buckets = [v for k, v in values.items() if "_bucket" in k]
    assert buckets == sorted(buckets)
    assert values['pr_lifecycle_duration_hours_bucket{le="1"}'] == 1
    assert values['pr_lifecycle_duration_hours_bucket{le="168"}'] == 2
    assert values['pr_lifecycle_duration_hours_bucket{le="+Inf"}'] == 3
    assert values["pr_lifecycle_duration_hours_sum"] == pytest.approx(203.5)


def test_boundary_value_is_inclusive():
    hist = make()
    hist.observe(6)
    values = parse(hist.render())
    assert values['pr_lifecycle_duration_hours_bucket{le="1"}'] == 0
    assert values['pr_lifecycle_duration_hours_bucket{le="6"}'] == 1


def test_unsorted_buckets_rejected():
    with pytest.raises(ValueError):
        Histogram("m", "h", [6, 1])
    with pytest.raises(ValueError):
        Histogram("m", "h", [1, 1])