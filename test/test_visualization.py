import os

from commentlens.aggregate import aggregate
from commentlens.schemas import AnalysisStats
from commentlens.visualization import render_all
from fakes import record


def test_render_all_writes_three_charts(tmp_path):
    stats = aggregate([record("positive", "UI", "Praise"), record("negative", "Speed", "Bug")])
    paths = render_all(stats, str(tmp_path), "Spring / Instagram")
    assert len(paths) == 3
    assert all(os.path.exists(p) for p in paths)
    assert os.path.basename(paths[0]) == "spring___instagram_sentiment.png"


def test_render_all_skips_empty_stats(tmp_path):
    assert render_all(AnalysisStats(), str(tmp_path)) == []
