from voxinterview.main import initialize_backend_application


def test_openapi_includes_interview_and_analysis_paths_without_startup():
    app = initialize_backend_application()
    schema = app.openapi()

    assert "openapi" in schema
    assert "paths" in schema

    paths = schema["paths"]
    assert "post" in paths["/api/analyze"]
    assert "post" in paths["/api/interview/ask"]
    assert "get" in paths["/api/interview/question"]
    assert "get" in paths["/api/health"]

    tags = schema.get("tags", [])
    tag_names = {t.get("name") for t in tags}
    assert {"analysis", "interview", "health"}.issubset(tag_names)


def test_analyze_response_schema_uses_camel_case_without_startup():
    app = initialize_backend_application()
    schemas = app.openapi().get("components", {}).get("schemas", {})

    analyze_schema = schemas.get("AnalyzeResponse")
    assert analyze_schema is not None
    assert {"transcript", "feedback", "confidence", "meta"}.issubset(analyze_schema.get("properties", {}))

    feedback_schema = schemas.get("FeedbackResult")
    assert feedback_schema is not None
    props = feedback_schema.get("properties", {})
    for key in ("clarity", "situation", "task", "action", "result", "starScore", "confidenceScore", "nextQuestion", "completed"):
        assert key in props


def test_analyze_documents_transcription_failure():
    app = initialize_backend_application()
    responses = app.openapi()["paths"]["/api/analyze"]["post"]["responses"]
    assert "502" in responses
