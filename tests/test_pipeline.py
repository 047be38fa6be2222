from estimate_engine.catalog import load_catalog
from estimate_engine.models import LineItem
from estimate_engine.pipeline import reload_session, run_estimate


def _saved_items():
    return [
        LineItem(cost_code_id="cc-a", labor_amount=100, material_amount=50, contingency_enabled=True),
        LineItem(cost_code_id="cc-x", labor_amount=200, material_amount=100),
        LineItem(cost_code_id="gone", labor_amount=999),
    ]


def test_run_estimate_persists_header_items_and_diagnostics(catalog, settings, monkeypatch):
    monkeypatch.delenv("ESTIMATE_DB_PATH", raising=False)

    result = run_estimate(
        catalog=catalog,
        settings=settings,
        project_id="proj-1",
        corporation_id="corp-1",
        line_items=_saved_items(),
        deleted_ids=["cc-b"],
        tax_amount=10,
        discount_amount=5,
    )

    assert result.estimate_number == "EST-0001"
    assert result.summary.base_total == 450
    assert result.summary.contingency_total == 15
    assert result.summary.total_amount == 465
    assert result.summary.final_amount == 470
    assert result.totals.grand_total == 150
    assert result.totals.other_grand_total == 300

    header = result.table("estimates")
    assert header.loc[0, "final_amount"] == 470
    assert "cc-b" not in result.table("estimate_line_items")["cost_code_id"].tolist()

    diag = result.table("diagnostics")
    assert len(diag) == 1
    assert diag.loc[0, "level"] == "warning"
    assert "gone" in diag.loc[0, "detail_json"]


def test_reload_session_restores_tree_and_deletions(catalog, settings, monkeypatch):
    monkeypatch.delenv("ESTIMATE_DB_PATH", raising=False)
    result = run_estimate(
        catalog=catalog,
        settings=settings,
        project_id="proj-1",
        corporation_id="corp-1",
        line_items=_saved_items(),
        deleted_ids=["cc-b"],
    )

    session = reload_session(result.store, result.estimate_id, catalog, settings)

    assert session.removed_ids() == ["cc-b"]
    assert session.node("cc-a").labor_amount == 100
    assert session.totals().main.contingency == 15
    assert [i.to_dict() for i in session.line_items()] == [i.to_dict() for i in result.line_items]


def test_second_estimate_gets_next_number(catalog, settings, monkeypatch):
    monkeypatch.delenv("ESTIMATE_DB_PATH", raising=False)
    first = run_estimate(catalog=catalog, settings=settings, project_id="p", corporation_id="c")

    second = run_estimate(catalog=catalog, settings=settings, project_id="p", corporation_id="c", store=first.store)

    assert second.estimate_number == "EST-0002"


def test_sample_catalog_smoke(monkeypatch):
    monkeypatch.delenv("ESTIMATE_DB_PATH", raising=False)
    catalog, settings = load_catalog()

    result = run_estimate(catalog=catalog, settings=settings, project_id="sample", corporation_id="demo")

    assert result.summary.final_amount == 0
    assert result.line_items
    assert all(not item.cost_code_id == "cc-0920" for item in result.line_items)
    assert result.diagnostics == {"warnings": [], "errors": []}
