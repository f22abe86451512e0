import io

from bulkimport.main import ProgressBars, parse_columns
from bulkimport.schemas import BUILDING_PHASE, INSERTING_PHASE, ProcessUpdate


def test_progress_bars_render_one_bar_per_phase() -> None:
    output = io.StringIO()
    bars = ProgressBars(file=output)

    bars(ProcessUpdate(processed=3, failed=0, total=3, phase=BUILDING_PHASE))
    bars(ProcessUpdate(processed=1, failed=0, total=3, phase=INSERTING_PHASE))
    bars(ProcessUpdate(processed=3, failed=1, total=3, phase=INSERTING_PHASE))

    rendered = output.getvalue()
    assert "Building" in rendered
    assert "Inserting" in rendered
    assert "3/3" in rendered
    assert "failed=1" in rendered
    assert bars._bars == {}


def test_progress_bars_close_unfinished_phases() -> None:
    bars = ProgressBars(file=io.StringIO())

    bars(ProcessUpdate(processed=1, failed=0, total=4, phase=INSERTING_PHASE))
    bars.close()

    assert bars._bars == {}


def test_parse_columns_trims_and_drops_empty_entries() -> None:
    assert parse_columns(" id, ,name ,") == ["id", "name"]
    assert parse_columns(" , ") is None
    assert parse_columns(None) is None
