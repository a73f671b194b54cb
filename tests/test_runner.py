"""
Tests for ExecutionRegistry (run-state tracking)
"""
import asyncio

import pytest


def _failing_pipeline(document):
    text = document.add_node('text', text='cat')
    gen = document.add_node('generate')
    document.connect(text, 'output', gen, 'prompt')
    return text, gen


def test_start_execution_records_completed_run(document):
    from nodeflow.core.execution.runner import ExecutionRegistry

    registry = ExecutionRegistry()
    text = document.add_node('text', text='cat')
    gen = document.add_node('generate')
    document.connect(text, 'output', gen, 'prompt')

    run_id = asyncio.run(registry.start_execution(document, [gen]))
    state = registry.get_state(document.document_id)

    assert run_id == 1
    assert state.run_id == 1
    assert state.last_completed_run_id == 1
    assert state.running_graph is None
    assert not registry.is_running(document.document_id)
    assert registry.get_snapshot(document.document_id) == {
        text: {'status': 'executed', 'error': None},
        gen: {'status': 'executed', 'error': None},
    }


def test_state_is_created_lazily():
    from nodeflow.core.execution.runner import ExecutionRegistry, RunState

    registry = ExecutionRegistry()
    assert registry.get_snapshot('unknown') == {}
    assert registry.stop_execution('unknown') is None
    assert registry.get_state('unknown') == RunState()


def test_stop_mid_run_freezes_snapshot(document):
    """Stopping leaves downstream nodes waiting and records the active run id"""
    from nodeflow.core.execution.runner import ExecutionRegistry

    registry = ExecutionRegistry()
    text = document.add_node('text', text='cat')
    delay = document.add_node('delay', delayMs=200)
    join = document.add_node('join')
    document.connect(text, 'output', delay, 'input')
    document.connect(delay, 'output', join, 'inputs')

    async def scenario():
        task = asyncio.create_task(registry.start_execution(document, [join]))
        await asyncio.sleep(0.05)
        assert registry.is_running(document.document_id)
        stopped = registry.stop_execution(document.document_id)
        await task
        return stopped

    stopped_run_id = asyncio.run(scenario())
    state = registry.get_state(document.document_id)
    snapshot = registry.get_snapshot(document.document_id)

    assert stopped_run_id == 1
    assert state.last_completed_run_id == 1
    assert state.running_graph is None
    assert snapshot[text]['status'] == 'executed'
    assert snapshot[delay]['status'] == 'executing'
    assert snapshot[join] == {'status': 'waiting', 'error': None}
    # The in-flight delay finished after the stop but nothing downstream ran
    assert document.get_node(join) == {'type': 'join', 'separator': ', '}


def test_newer_run_supersedes_older_one(document):
    """A late completion of a superseded run never overwrites the newer run"""
    from nodeflow.core.execution.runner import ExecutionRegistry

    registry = ExecutionRegistry()
    text = document.add_node('text', text='cat')
    slow = document.add_node('delay', delayMs=150)
    document.connect(text, 'output', slow, 'input')
    quick = document.add_node('number', value=3)

    async def scenario():
        first = asyncio.create_task(registry.start_execution(document, [slow]))
        await asyncio.sleep(0.02)
        second = await registry.start_execution(document, [quick])
        first_id = await first
        return first_id, second

    first_id, second_id = asyncio.run(scenario())
    state = registry.get_state(document.document_id)

    assert (first_id, second_id) == (1, 2)
    assert state.run_id == 2
    assert state.last_completed_run_id == 2
    assert set(registry.get_snapshot(document.document_id)) == {quick}


def test_failed_nodes_summary_and_dismissal(document, generation_client):
    from nodeflow.core.execution.runner import ExecutionRegistry

    generation_client.generate.side_effect = RuntimeError("model unavailable")
    registry = ExecutionRegistry()
    _, gen = _failing_pipeline(document)

    asyncio.run(registry.start_execution(document, [gen]))
    assert registry.get_failed_nodes(document) == [
        {'node_id': gen, 'label': 'Generate', 'error': 'model unavailable'}
    ]

    registry.dismiss_errors(document.document_id)
    assert registry.get_failed_nodes(document) == []

    # A new failing run shows the summary again
    asyncio.run(registry.start_execution(document, [gen]))
    assert len(registry.get_failed_nodes(document)) == 1


def test_status_report(document):
    from nodeflow.core.execution.runner import ExecutionRegistry

    registry = ExecutionRegistry()
    text = document.add_node('text')
    asyncio.run(registry.start_execution(document, [text]))

    assert registry.get_status(document.document_id) == {
        'running': False,
        'run_id': 1,
        'last_completed_run_id': 1,
        'nodes': {text: {'status': 'executed', 'error': None}},
    }


def test_snapshot_listeners_fire_on_transitions(document):
    from nodeflow.core.execution.runner import ExecutionRegistry

    registry = ExecutionRegistry()
    text = document.add_node('text')
    seen = []
    remove = registry.add_snapshot_listener(
        lambda document_id, snapshot: seen.append((document_id, snapshot[text]['status']))
    )

    asyncio.run(registry.start_execution(document, [text]))
    remove()
    asyncio.run(registry.start_execution(document, [text]))

    assert seen == [(document.document_id, 'waiting'), (document.document_id, 'executed')]


def test_dispose_stops_and_forgets(document):
    from nodeflow.core.execution.runner import ExecutionRegistry

    registry = ExecutionRegistry()
    delay = document.add_node('delay', delayMs=100)

    async def scenario():
        task = asyncio.create_task(registry.start_execution(document, [delay]))
        await asyncio.sleep(0.02)
        engine = registry.get_state(document.document_id).running_graph
        registry.dispose(document.document_id)
        await task
        return engine

    engine = asyncio.run(scenario())
    assert engine.state == 'stopped'
    assert registry.get_state(document.document_id).run_id == 0


def test_module_level_functions_use_default_registry(document):
    from nodeflow.core.execution import runner

    text = document.add_node('text', text='x')
    run_id = asyncio.run(runner.start_execution(document, [text]))
    try:
        assert runner.get_snapshot(document.document_id) == {text: {'status': 'executed', 'error': None}}
        assert runner.stop_execution(document.document_id) is None
        assert runner.execution_registry.get_state(document.document_id).run_id == run_id
    finally:
        runner.execution_registry.dispose(document.document_id)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
