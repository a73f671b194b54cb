"""
Tests for the execution graph snapshot builder
"""
import pytest


def test_snapshot_walks_backward_only(document):
    """Only the starting nodes and their producers are captured"""
    from nodeflow.core.execution.snapshot import build_snapshot

    text = document.add_node('text', text='cat')
    gen = document.add_node('generate')
    preview = document.add_node('preview')
    unrelated = document.add_node('number')
    document.connect(text, 'output', gen, 'prompt')
    document.connect(gen, 'output', preview, 'image')

    snapshot = build_snapshot(document, [gen])

    assert set(snapshot) == {text, gen}
    assert preview not in snapshot and unrelated not in snapshot
    assert all(node.state == 'waiting' for node in snapshot.values())
    # Connection lists are complete, including the edge to the excluded preview
    assert {c.terminal for c in snapshot[gen].connections} == {'start', 'end'}


def test_snapshot_skips_missing_ids(document):
    from nodeflow.core.execution.snapshot import build_snapshot

    text = document.add_node('text')
    snapshot = build_snapshot(document, [text, 'ghost', text])
    assert list(snapshot) == [text]


def test_snapshot_records_each_node_once(document):
    """Diamond shaped graphs visit the shared producer once"""
    from nodeflow.core.execution.snapshot import build_snapshot, root_node_ids

    source = document.add_node('text', text='x')
    repeater = document.add_node('repeater', outputCount=2)
    join = document.add_node('join')
    document.connect(source, 'output', repeater, 'input')
    document.connect(repeater, 'out_0', join, 'inputs')
    document.connect(repeater, 'out_1', join, 'inputs')

    snapshot = build_snapshot(document, [join])
    assert set(snapshot) == {source, repeater, join}
    assert root_node_ids(snapshot) == [source]


def test_snapshot_payload_is_isolated_from_later_edits(document):
    from nodeflow.core.execution.snapshot import build_snapshot

    text = document.add_node('text', text='before')
    snapshot = build_snapshot(document, [text])
    document.update_node(text, lambda payload: {**payload, 'text': 'after'})

    assert snapshot[text].payload['text'] == 'before'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
