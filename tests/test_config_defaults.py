from docshield.config import load_config


def test_defaults_load() -> None:
    cfg = load_config(env={})
    assert cfg.schema_version == 1
    assert cfg.redaction.enable_pii is True
    assert cfg.redaction.confidence_threshold == 0.7
    assert cfg.classifier.confidence_threshold == 0.7
    assert cfg.analysis.preview_length == 100
    assert cfg.patterns.disabled == []
    assert cfg.storage.path == "docshield.db"
    assert cfg.logging.level == "WARNING"
