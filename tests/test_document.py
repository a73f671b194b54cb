"""
Tests for PipelineDocument (live graph)
"""
import pytest


def test_connect_replaces_single_input(document):
    """A non-multi sink port keeps only the latest connection"""
    a = document.add_node('text', text='a')
    b = document.add_node('text', text='b')
    gen = document.add_node('generate')

    document.connect(a, 'output', gen, 'prompt')
    document.connect(b, 'output', gen, 'prompt')

    incoming = [c for c in document.get_port_connections(gen) if c.terminal == 'end']
    assert len(incoming) == 1
    assert incoming[0].connected_node_id == b


def test_connect_to_multi_port_appends_in_order(document):
    join = document.add_node('join')
    ids = [document.add_node('text', text=t) for t in 'abc']
    for node_id in ids:
        document.connect(node_id, 'output', join, 'inputs')

    incoming = sorted(
        (c for c in document.get_port_connections(join) if c.terminal == 'end'),
        key=lambda c: c.order
    )
    assert [c.connected_node_id for c in incoming] == ids
    assert [c.order for c in incoming] == [0, 1, 2]


def test_connect_validates_ports(document):
    text = document.add_node('text')
    preview = document.add_node('preview')

    with pytest.raises(ValueError):
        document.connect(text, 'nope', preview, 'image')
    with pytest.raises(ValueError):
        document.connect(preview, 'image', text, 'output')


def test_port_connections_seen_from_both_ends(document):
    text = document.add_node('text')
    gen = document.add_node('generate')
    document.connect(text, 'output', gen, 'prompt')

    [outgoing] = document.get_port_connections(text)
    [incoming] = document.get_port_connections(gen)
    assert outgoing.terminal == 'start' and outgoing.own_port_id == 'output'
    assert outgoing.connected_node_id == gen and outgoing.connected_port_id == 'prompt'
    assert incoming.terminal == 'end' and incoming.own_port_id == 'prompt'
    assert incoming.connected_node_id == text


def test_output_info_follows_the_chain(document):
    """Previews flow through pass-through nodes without running anything"""
    text = document.add_node('text', text='hello')
    delay = document.add_node('delay')
    join = document.add_node('join', separator='+')
    other = document.add_node('text', text='world')
    document.connect(text, 'output', delay, 'input')
    document.connect(delay, 'output', join, 'inputs')
    document.connect(other, 'output', join, 'inputs')

    assert document.get_output_info(delay)['output'].value == 'hello'
    assert document.get_output_info(join)['output'].value == 'hello+world'
    assert document.get_input_info(join)['inputs'].value == ['hello', 'world']


def test_update_node_notifies_and_keeps_type(document):
    events = []
    document.add_listener(lambda event, node_id: events.append((event, node_id)))
    node_id = document.add_node('text', text='a')

    document.update_node(node_id, lambda payload: {**payload, 'text': 'b', 'type': 'generate'})

    assert document.get_node(node_id) == {'type': 'text', 'text': 'b'}
    assert events == [('payload', node_id)]
    # Unknown nodes are ignored
    document.update_node('missing', lambda payload: payload)


def test_busy_flags_and_listener_removal(document):
    events = []
    remove = document.add_listener(lambda event, node_id: events.append(event))
    node_id = document.add_node('text')

    document.set_busy(node_id, True)
    assert document.is_busy(node_id) and document.is_stale(node_id)
    document.set_busy(node_id, False)
    assert not document.is_busy(node_id)

    remove()
    document.set_busy(node_id, True)
    assert events == ['busy', 'idle']


def test_terminal_node_ids(document):
    text = document.add_node('text')
    gen = document.add_node('generate')
    lonely = document.add_node('number')
    document.connect(text, 'output', gen, 'prompt')

    assert set(document.terminal_node_ids()) == {gen, lonely}


def test_graph_round_trip_fills_defaults(container):
    from nodeflow.core.execution.document import PipelineDocument

    graph = {
        'nodes': [
            {'id': 't', 'type': 'text', 'text': 'cat'},
            {'id': 'j', 'type': 'join'},
        ],
        'connections': [
            {'from_node': 't', 'from_port': 'output', 'to_node': 'j', 'to_port': 'inputs', 'order': 4},
        ],
    }
    document = PipelineDocument.from_graph(graph, 'doc-1', container)
    saved = document.to_graph()

    assert saved['id'] == 'doc-1'
    assert {'id': 'j', 'type': 'join', 'separator': ', '} in saved['nodes']
    assert saved['connections'][0]['order'] == 4


def test_load_graph_rejects_bad_input(document):
    from nodeflow.core.execution.node_registry import UnknownNodeTypeError

    with pytest.raises(UnknownNodeTypeError):
        document.load_graph({'nodes': [{'id': 'x', 'type': 'teleport'}], 'connections': []})
    with pytest.raises(ValueError):
        document.load_graph({
            'nodes': [{'id': 't', 'type': 'text'}],
            'connections': [{'from_node': 't', 'from_port': 'output', 'to_node': 'ghost', 'to_port': 'image'}],
        })


def test_remove_node_drops_connections(document):
    text = document.add_node('text')
    gen = document.add_node('generate')
    document.connect(text, 'output', gen, 'prompt')

    document.remove_node(text)
    assert document.get_connections() == []
    assert document.get_node(text) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
