"""
Tests for stage timing.
"""

import pytest

from pymlm.core.compute.timing import Timer


class TestTimer:

    def test_sections_recorded(self):
        timer = Timer()
        timer.start()
        with timer.section('projection'):
            pass
        with timer.section('fit'):
            pass
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'projection', 'fit'}
        assert result['total_seconds'] >= result['projection']

    def test_stage_order(self):
        timer = Timer()
        timer.start()
        for name in ('fit', 'pvalues', 'fit'):
            with timer.section(name):
                pass
        assert timer.stages == ('fit', 'pvalues')

    def test_section_timed_on_error(self):
        timer = Timer()
        timer.start()
        with pytest.raises(ValueError):
            with timer.section('decomposition'):
                raise ValueError("boom")
        timer.stop()
        assert 'decomposition' in timer.result()

    def test_result_before_stop(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError, match="before stop"):
            timer.result()

    def test_stop_before_start(self):
        with pytest.raises(RuntimeError, match="before start"):
            Timer().stop()
