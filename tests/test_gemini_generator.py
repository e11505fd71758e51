import pytest
from google.genai import types

from services.errors import GenerationError
from services.gemini_generator import (
    MODEL_NAME,
    TRY_ON_PROMPT,
    build_try_on_contents,
    extract_first_image,
    generate_try_on_image
)

from conftest import make_image
from fakes import FakeClient, image_response, text_response


def test_contents_order_is_model_clothing_prompt():
    model_image = make_image("model.png", "image/png")
    clothing_image = make_image("shirt.jpg", "image/jpeg")

    contents = build_try_on_contents(model_image, clothing_image)

    assert len(contents) == 1
    parts = contents[0].parts
    assert contents[0].role == "user"
    assert parts[0].inline_data.data == model_image.data
    assert parts[0].inline_data.mime_type == "image/png"
    assert parts[1].inline_data.data == clothing_image.data
    assert parts[1].inline_data.mime_type == "image/jpeg"
    assert parts[2].text == TRY_ON_PROMPT


def test_prompt_mentions_both_images():
    assert "second image" in TRY_ON_PROMPT
    assert "first image" in TRY_ON_PROMPT
    assert "shadows" in TRY_ON_PROMPT


def test_extract_first_image():
    blob = extract_first_image(image_response(b"A", "image/png"))
    assert blob.data == b"A"
    assert blob.mime_type == "image/png"


@pytest.mark.parametrize("response", [
    None,
    types.GenerateContentResponse(candidates=[]),
    types.GenerateContentResponse(candidates=[types.Candidate(content=None)]),
    types.GenerateContentResponse(candidates=[types.Candidate(content=types.Content(parts=[]))]),
    text_response(),
])
def test_extract_first_image_without_image(response):
    assert extract_first_image(response) is None


def test_only_first_part_is_considered():
    response = types.GenerateContentResponse(candidates=[
        types.Candidate(content=types.Content(parts=[
            types.Part(text="Here you go"),
            types.Part(inline_data=types.Blob(data=b"A", mime_type="image/png")),
        ]))
    ])
    assert extract_first_image(response) is None


def test_generate_returns_base64():
    client = FakeClient(image_response(b"A", "image/png"))

    result = generate_try_on_image(client, make_image("m.png"), make_image("c.png"))

    assert result.image == "QQ=="
    assert result.mime_type == "image/png"
    call = client.models.calls[0]
    assert call['model'] == MODEL_NAME
    assert call['config'].response_modalities == ["IMAGE", "TEXT"]


def test_generate_without_image_raises():
    client = FakeClient(text_response())
    with pytest.raises(GenerationError) as excinfo:
        generate_try_on_image(client, make_image("m.png"), make_image("c.png"))
    assert excinfo.value.message == "Failed to generate image"
    assert excinfo.value.status_code == 500
