def test_app_factory_creates_app(app):
    # App fixture comes from tests/conftest.py
    assert app is not None
    assert app.testing is True
    assert app.extensions['interview']['redis'] is not None


def test_routes_registered(app):
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    for path in ('/api/ai/analyze-answer', '/api/ai/generate-questions', '/sessions',
                 '/sessions/<session_id>/answers', '/sessions/<session_id>/next',
                 '/sessions/<session_id>/end', '/history'):
        assert path in rules


def test_unknown_route_is_404(client):
    assert client.get('/start-interview').status_code == 404
