from pretty_json import PrettyJSONResponse


def test_renders_with_three_space_indent():
    response = PrettyJSONResponse(content={"topic": "Math", "tags": ["a"]})
    assert response.body == b'{\n   "topic": "Math",\n   "tags": [\n      "a"\n   ]\n}'


def test_keeps_non_ascii_text():
    response = PrettyJSONResponse(content={"location": "Zürich"})
    assert "Zürich".encode("utf-8") in response.body
