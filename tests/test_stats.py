import pytest

from nlpform.stats import RunStats


def test_timed_counts_calls():
    stats = RunStats()
    for _ in range(3):
        with stats.timed("eval_f"):
            pass
    assert stats.count("eval_f") == 3
    assert stats.count("eval_c") == 0
    assert stats.time("eval_f") >= 0.0
    assert stats.to_dict()["eval_f"]["count"] == 3
    assert "eval_f" in str(stats)


def test_timed_counts_failed_calls():
    stats = RunStats()
    with pytest.raises(RuntimeError):
        with stats.timed("eval_grad_f"):
            raise RuntimeError("boom")
    assert stats.count("eval_grad_f") == 1
    stats.reset()
    assert stats.to_dict() == {}
    assert stats.total_time == 0.0
