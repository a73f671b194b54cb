"""
Tests for the node catalog
"""
import asyncio
from unittest.mock import MagicMock

import pytest


def _context(document, node_id):
    from nodeflow.core.execution.node_base import ExecutionContext
    return ExecutionContext(document=document, node_id=node_id)


def test_registry_contains_catalog():
    """Every catalog kind is registered under its node_type"""
    from nodeflow.core.execution.node_registry import NODE_REGISTRY, get_node_class

    expected = {
        'text', 'number', 'boolean', 'enum', 'model', 'generate', 'preview',
        'join', 'delay', 'random', 'repeater', 'switch', 'list_iterator',
    }
    assert expected <= set(NODE_REGISTRY)
    assert get_node_class('join').node_type == 'join'
    assert get_node_class('nope') is None


def test_unknown_node_type_raises():
    from nodeflow.core.execution.node_registry import get_node_definition, UnknownNodeTypeError

    with pytest.raises(UnknownNodeTypeError):
        get_node_definition({'type': 'does_not_exist'})
    with pytest.raises(ValueError):
        get_node_definition('does_not_exist')


def test_create_node_payload_applies_overrides():
    from nodeflow.core.execution.node_registry import create_node_payload

    payload = create_node_payload('list_iterator', items='a\nb')
    assert payload['type'] == 'list_iterator'
    assert payload['items'] == 'a\nb'
    assert payload['completedCount'] == 0


def test_join_trims_and_skips_blanks(document):
    """Join drops empty parts and uses the separator"""
    from nodeflow.core.execution.nodes.join import JoinNode

    node = JoinNode()
    result = asyncio.run(node.compute(
        {'type': 'join', 'separator': ' | '},
        {'inputs': [' a ', '', None, 'b', 3]},
        _context(document, 'j'),
    ))
    assert result == {'output': 'a | b | 3'}


def test_enum_falls_back_to_first_option(document):
    from nodeflow.core.execution.nodes.enum import EnumNode, ensure_selected_option

    assert ensure_selected_option("square, portrait", "portrait") == "portrait"
    assert ensure_selected_option("square, portrait", "gone") == "square"
    assert ensure_selected_option("", "x") is None

    result = asyncio.run(EnumNode().compute(
        {'type': 'enum', 'options': 'a,b', 'value': 'z'}, {}, _context(document, 'e')
    ))
    assert result == {'output': 'a'}


def test_model_node_encodes_reference(document):
    from nodeflow.core.execution.nodes.model import ModelNode, decode_model_ref

    result = asyncio.run(ModelNode().compute(
        {'type': 'model', 'provider': 'fal-ai', 'modelId': ' org/model '}, {}, _context(document, 'm')
    ))
    assert result == {'output': 'hf:fal-ai:org/model'}
    assert decode_model_ref(result['output']) == ('fal-ai', 'org/model')
    assert decode_model_ref('not a ref') is None


def test_random_respects_swapped_bounds(document):
    from nodeflow.core.execution.nodes.random_number import RandomNode

    node = RandomNode()
    for _ in range(20):
        result = asyncio.run(node.compute(
            {'type': 'random', 'min': 0, 'max': 100}, {'min': 5, 'max': 2}, _context(document, 'r')
        ))
        assert 2 <= result['output'] <= 5
        assert isinstance(result['output'], int)


def test_repeater_ports_follow_output_count():
    from nodeflow.core.execution.nodes.repeater import RepeaterNode

    ports = RepeaterNode().ports({'type': 'repeater', 'outputCount': 3})
    assert [p for p in ports if p.startswith('out_')] == ['out_0', 'out_1', 'out_2']
    assert ports['input'].is_sink


def test_switch_emits_stop_when_blocked(document):
    """A closed switch produces STOP instead of failing"""
    from nodeflow.core.execution.nodes.switch import SwitchNode
    from nodeflow.core.execution.values import STOP

    node = SwitchNode()
    ctx = _context(document, 's')
    closed = asyncio.run(node.compute({'type': 'switch', 'passOnFalse': False}, {'input': 'v', 'condition': False}, ctx))
    opened = asyncio.run(node.compute({'type': 'switch', 'passOnFalse': False}, {'input': 'v', 'condition': True}, ctx))
    inverted = asyncio.run(node.compute({'type': 'switch', 'passOnFalse': True}, {'input': 'v', 'condition': 'false'}, ctx))

    assert closed['output'] is STOP
    assert opened['output'] == 'v'
    assert inverted['output'] == 'v'


def test_generate_calls_client_and_writes_back(document, generation_client):
    """Generate runs the client and stores lastResultUrl on the payload"""
    from nodeflow.core.execution.nodes.generate import GenerateNode

    node_id = document.add_node('generate')
    result = asyncio.run(GenerateNode().compute(
        document.get_node(node_id),
        {'model': 'hf:auto:org/model', 'prompt': 'cat'},
        _context(document, node_id),
    ))

    assert result == {'output': 'https://img.test/cat.png'}
    generation_client.generate.assert_called_once_with('hf:auto:org/model', 'cat')
    assert document.get_node(node_id)['lastResultUrl'] == 'https://img.test/cat.png'


def test_generate_rejects_empty_prompt(document):
    from nodeflow.core.execution.nodes.generate import GenerateNode

    node_id = document.add_node('generate')
    with pytest.raises(ValueError):
        asyncio.run(GenerateNode().compute(document.get_node(node_id), {}, _context(document, node_id)))


def test_preview_coerces_image_url(document):
    from nodeflow.core.execution.nodes.preview import PreviewNode, coerce_to_image_url

    assert coerce_to_image_url('  https://x/y.png ') == 'https://x/y.png'
    assert coerce_to_image_url('null') is None
    assert coerce_to_image_url(['', {'imageUrl': 'https://a'}]) == 'https://a'
    assert coerce_to_image_url({'data': {'src': 'https://b'}}) == 'https://b'
    assert coerce_to_image_url(42) is None

    node_id = document.add_node('preview')
    result = asyncio.run(PreviewNode().compute(
        document.get_node(node_id), {'image': 'https://c'}, _context(document, node_id)
    ))
    assert result == {}
    assert document.get_node(node_id)['lastImageUrl'] == 'https://c'


def test_delay_passes_input_through(document):
    from nodeflow.core.execution.nodes.delay import DelayNode

    result = asyncio.run(DelayNode().compute(
        {'type': 'delay', 'delayMs': -5}, {'input': 'x'}, _context(document, 'd')
    ))
    assert result == {'output': 'x'}


def test_list_iterator_preview_reports_progress():
    from nodeflow.core.execution.nodes.list_iterator import ListIteratorNode, parse_items

    assert parse_items(" a \n\n b\n") == ['a', 'b']

    node = ListIteratorNode()
    info = node.preview_outputs(
        {'type': 'list_iterator', 'items': 'a\nb\nc', 'completedCount': 2, 'lastResultUrl': 'u'}, {}
    )
    assert info['current_item'].value == 'b'
    assert info['output'].value == 'u'
    assert info['output'].data_type == 'image'


def test_generation_client_wraps_http_errors():
    """Transport failures surface as GenerationError"""
    import requests
    from nodeflow.core.execution.nodes.generation_client import GenerationClient, GenerationError

    client = GenerationClient(endpoint_url="http://generation.test", timeout=1, api_key="k")
    client.session = MagicMock()

    response = MagicMock()
    response.json.return_value = {"imageUrl": "https://img/1.png"}
    client.session.post.return_value = response
    assert client.generate("hf:auto:m", "cat") == "https://img/1.png"
    _, kwargs = client.session.post.call_args
    assert kwargs['json'] == {"model": "hf:auto:m", "prompt": "cat"}
    assert kwargs['headers']['Authorization'] == "Bearer k"

    client.session.post.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(GenerationError):
        client.generate("hf:auto:m", "cat")

    client.session.post.side_effect = None
    response.json.return_value = {}
    with pytest.raises(GenerationError, match="no image"):
        client.generate("hf:auto:m", "cat")


def test_generation_client_health_check():
    import requests
    from nodeflow.core.execution.nodes.generation_client import GenerationClient

    client = GenerationClient(endpoint_url="http://generation.test")
    client.session = MagicMock()
    client.session.get.return_value.status_code = 200
    assert client.health_check() is True
    assert client.session.get.call_args.args[0] == "http://generation.test/health"

    client.session.get.return_value.status_code = 503
    assert client.health_check() is False

    client.session.get.side_effect = requests.exceptions.ConnectionError("refused")
    assert client.health_check() is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
