import pytest

from softwhere import catalog


def test_implied_features_and_tech():
    assert catalog.implied_features("ai", "rag") == {"rag"}
    assert catalog.implied_features("ai", "chatbot") == {"llm"}
    assert catalog.implied_features("telegram", "miniapp") == {"miniapp"}
    assert catalog.implied_features("web", "landing") == frozenset()
    assert catalog.implied_features("web", None) == frozenset()
    # subtype ids only resolve under their own service
    assert catalog.implied_features("web", "rag") == frozenset()

    assert catalog.implied_tech("desktop", "electron") == "electron"
    assert catalog.implied_tech("desktop", "tauri") == "tauri"
    assert catalog.implied_tech("desktop", "native") is None
    assert catalog.implied_tech("mobile", "electron") is None


def test_features_for_service_hides_included():
    ids = [f.id for f in catalog.features_for_service("ai", "rag")]
    assert "rag" not in ids
    assert ids == ["llm", "embeddings", "finetuning", "api_integration"]


def test_features_for_unknown_service_uses_other():
    assert catalog.features_for_service("quantum") == list(catalog.FEATURES_BY_SERVICE["other"])


def test_feature_price_follows_hours():
    payments = next(f for f in catalog.FEATURES_BY_SERVICE["web"] if f.id == "payments")
    assert payments.hours == 300
    assert payments.price == 300 * catalog.HOURLY_RATE


def test_tech_for_service_groups():
    assert catalog.tech_for_service("other") == []

    web = catalog.tech_for_service("web")
    assert [(g.group, g.label) for g in web] == [("web_frontend", "Frontend"), ("backend", "Web backend")]

    mobile = catalog.tech_for_service("mobile")
    assert [g.group for g in mobile] == ["mobile", "backend"]
    backend_ids = {t.id for t in mobile[1].options}
    assert "rails" not in backend_ids
    assert {"nestjs", "firebase", "postgresql"} <= backend_ids


def test_tech_for_desktop_skips_implied():
    groups = catalog.tech_for_service("desktop", "electron")
    assert [g.group for g in groups] == ["backend"]
    ids = {t.id for g in groups for t in g.options}
    assert ids == {"dotnet", "postgresql"}
    assert "electron" not in ids


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        catalog.BASE_HOURS["web"] = 1
    with pytest.raises(TypeError):
        catalog.FEATURE_HOURS["new"] = 10


def test_every_offered_option_is_priced():
    for options in catalog.FEATURES_BY_SERVICE.values():
        for f in options:
            assert f.id in catalog.FEATURE_HOURS
    for t in catalog.TECH_STACK_OPTIONS:
        assert t.id in catalog.TECH_STACK_ADJUSTMENT
    for subs in catalog.SERVICE_SUBTYPES.values():
        for s in subs:
            assert set(s.includedFeatures) <= set(catalog.FEATURE_HOURS)


def test_catalog_snapshot():
    snap = catalog.catalog_snapshot("ai", "rag")
    assert snap["hourlyRate"] == 35
    assert len(snap["services"]) == 1
    ai = snap["services"][0]
    assert ai["baseHours"] == 250
    assert "rag" not in [f["id"] for f in ai["features"]]
    assert [g["group"] for g in ai["techStack"]] == ["ai", "backend"]

    full = catalog.catalog_snapshot()
    assert [s["id"] for s in full["services"]] == list(catalog.PROJECT_TYPES)
