"""Unit tests for OpenAIMetadataGenerator."""
from unittest.mock import Mock

import pytest
from openai import OpenAIError

from adapters.openai_metadata_generator import OpenAIMetadataGenerator
from ports.metadata_generator import MetadataGenerationError


def completion(content):
    message = Mock(content=content)
    return Mock(choices=[Mock(message=message)])


@pytest.fixture
def mock_client():
    return Mock()


@pytest.fixture
def generator(mock_client):
    return OpenAIMetadataGenerator(api_key=None, model="gpt-test", temperature=0.5, client=mock_client)


@pytest.mark.unit
class TestGenerate:

    def test_returns_json_object(self, generator, mock_client):
        mock_client.chat.completions.create.return_value = completion('{"title": "Hello"}')

        assert generator.generate("prompt text") == {"title": "Hello"}

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["temperature"] == 0.5
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][1] == {"role": "user", "content": "prompt text"}

    def test_api_error(self, generator, mock_client):
        mock_client.chat.completions.create.side_effect = OpenAIError("rate limited")

        with pytest.raises(MetadataGenerationError):
            generator.generate("prompt")

    @pytest.mark.parametrize("content", [None, "", "not json", "[1, 2]"])
    def test_unusable_responses(self, generator, mock_client, content):
        mock_client.chat.completions.create.return_value = completion(content)

        with pytest.raises(MetadataGenerationError):
            generator.generate("prompt")

    def test_no_choices(self, generator, mock_client):
        mock_client.chat.completions.create.return_value = Mock(choices=[])

        with pytest.raises(MetadataGenerationError):
            generator.generate("prompt")


@pytest.mark.unit
def test_requires_api_key():
    with pytest.raises(MetadataGenerationError):
        OpenAIMetadataGenerator(api_key=None)
