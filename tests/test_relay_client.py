from unittest.mock import MagicMock

import pytest
import requests

from services.errors import RelayError
from services.relay_client import RelayClient

from conftest import make_image


def fake_response(status_code, payload=None, json_error=False):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    if json_error:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


def client_with(response, **kwargs):
    session = MagicMock(spec=requests.Session)
    session.post.return_value = response
    return RelayClient("http://localhost:5001/", session=session, **kwargs), session


def test_posts_both_images_in_order():
    client, session = client_with(
        fake_response(200, {'success': True, 'image': 'QQ==', 'mimeType': 'image/png'}),
        timeout=30
    )
    model_image = make_image("model.png")
    clothing_image = make_image("shirt.jpg", "image/jpeg")

    result = client.generate(model_image, clothing_image)

    assert result.image == 'QQ=='
    assert result.mime_type == 'image/png'
    args, kwargs = session.post.call_args
    assert args[0] == "http://localhost:5001/api/upload"
    assert kwargs['timeout'] == 30
    assert kwargs['files']['modelImage'] == ("model.png", model_image.data, "image/png")
    assert kwargs['files']['clothingImage'] == ("shirt.jpg", clothing_image.data, "image/jpeg")


def test_default_timeout_is_transport_default():
    client, session = client_with(fake_response(200, {'image': 'QQ==', 'mimeType': 'image/png'}))
    client.generate(make_image(), make_image())
    assert session.post.call_args.kwargs['timeout'] is None


def test_error_message_from_server():
    client, _ = client_with(fake_response(400, {'error': 'Both modelImage and clothingImage are required'}))

    with pytest.raises(RelayError) as excinfo:
        client.generate(make_image(), make_image())

    assert str(excinfo.value) == 'Both modelImage and clothingImage are required'
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize("response", [
    fake_response(502, json_error=True),
    fake_response(500, {}),
    fake_response(500, ["unexpected"]),
])
def test_error_without_message_uses_default(response):
    client, _ = client_with(response)
    with pytest.raises(RelayError) as excinfo:
        client.generate(make_image(), make_image())
    assert str(excinfo.value) == 'Failed to process images'
