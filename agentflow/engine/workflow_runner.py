"""
Workflow runner - executes agent workflow graphs.

Uses a FIFO queue with a visited set: every node runs at most once per run,
and a node's outgoing edges are followed only after it succeeds.
"""

from __future__ import annotations

import asyncio
import logging
import traceback
from collections import deque
from typing import TYPE_CHECKING, Any

from ..core.config import get_settings
from ..core.exceptions import WorkflowValidationError
from .context import ExecutionContext
from .expression_engine import ExpressionEngine, SafeExpressionEvaluator
from .parser import parse_workflow
from .types import ErrorInfo, NodeDefinition, ResultEnvelope, RunOptions, RunResult, Workflow

if TYPE_CHECKING:
    from ..core.config import Settings
    from ..nodes.base import NodeExecutor
    from .expression_engine import ExpressionEvaluator
    from .node_registry import NodeRegistry

logger = logging.getLogger(__name__)

TRIGGER_TYPE = "trigger"


class WorkflowRunner:
    """Executes workflows one node at a time, breadth-first from the start node."""

    def __init__(
        self,
        registry: NodeRegistry | None = None,
        evaluator: ExpressionEvaluator | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        if registry is None:
            from .node_registry import create_default_registry

            registry = create_default_registry(self.settings)
        self._registry = registry
        self.engine = ExpressionEngine(
            evaluator or SafeExpressionEvaluator(max_length=self.settings.max_expression_length)
        )

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    async def run(
        self,
        workflow: Workflow,
        context: ExecutionContext | None = None,
        *,
        event: Any = None,
        variables: dict[str, Any] | None = None,
        options: RunOptions | None = None,
    ) -> RunResult:
        """
        Run a workflow to completion.

        Args:
            workflow: The workflow definition to execute
            context: Pre-built context; when given, event/variables/options are ignored
            event: Seed payload exposed to ``$.event`` references and trigger nodes
            variables: Run variables exposed to ``$.vars`` references
            options: Run options; defaults are derived from settings

        Returns:
            RunResult with the final context, start node id and visited order
        """
        if context is None:
            context = ExecutionContext(
                options=options or RunOptions.from_settings(self.settings),
                event=event,
                variables=variables,
                summary_max_length=self.settings.summary_max_length,
            )

        if not workflow.nodes:
            logger.info("Workflow '%s' has no nodes; nothing to run", workflow.name or "")
            return RunResult(context=context, workflow=workflow, start_node_id=None, visited=[])

        duplicates = workflow.duplicate_node_ids()
        if duplicates:
            raise WorkflowValidationError(
                f"Duplicate node ids: {', '.join(duplicates)}", node_ids=duplicates
            )

        # Build node lookup dict for O(1) access
        node_map: dict[str, NodeDefinition] = {n.id: n for n in workflow.nodes}

        start_node = self.find_start_node(workflow)
        logger.info(
            "Starting workflow '%s' at node '%s' (%d nodes)",
            workflow.name or "",
            start_node.id,
            len(workflow.nodes),
        )

        queue: deque[str] = deque([start_node.id])
        # Insertion-ordered set
        visited: dict[str, None] = {}

        while queue:
            node_id = queue.popleft()
            node = node_map.get(node_id)
            if node is None:
                logger.warning("Node '%s' not found in workflow; skipping", node_id)
                continue

            if node_id in visited:
                logger.debug("Node '%s' already visited; skipping", node_id)
                context.log_node_skipped(node_id, "already visited")
                continue

            envelope = await self._execute_node(node, context)
            visited[node_id] = None

            if envelope.error is not None:
                logger.warning(
                    "Node '%s' failed: %s: %s",
                    node_id,
                    envelope.error.type,
                    envelope.error.message,
                )
                if context.options.stop_on_error:
                    logger.info("Stopping workflow after error in node '%s'", node_id)
                    break
                continue

            for target in self._select_next(node, context, visited):
                queue.append(target)

        logger.info("Workflow '%s' finished; visited=%s", workflow.name or "", list(visited))
        return RunResult(
            context=context,
            workflow=workflow,
            start_node_id=start_node.id,
            visited=list(visited),
        )

    async def run_document(
        self,
        document: str | bytes | dict[str, Any],
        context: ExecutionContext | None = None,
        **kwargs: Any,
    ) -> RunResult:
        """Parse a workflow document and run it."""
        return await self.run(parse_workflow(document), context, **kwargs)

    def find_start_node(self, workflow: Workflow) -> NodeDefinition:
        """First trigger node (case-insensitive type match), else the first declared node."""
        for node in workflow.nodes:
            if (node.type or "").strip().lower() == TRIGGER_TYPE:
                return node
        return workflow.nodes[0]

    async def _execute_node(self, node: NodeDefinition, context: ExecutionContext) -> ResultEnvelope:
        resolved_input = None
        if context.options.debug_include_resolved_inputs:
            try:
                resolved_input = self.engine.resolve(node.input, context, node.id)
            except Exception:
                logger.debug("Could not snapshot resolved input of '%s'", node.id, exc_info=True)

        entry = context.log_node_start(node.id, resolved_input)
        executor = self._registry.get(node.type)
        logger.info("Executing node id='%s' type='%s'", node.id, node.type)

        timeout = context.options.node_timeout
        try:
            if timeout:
                envelope = await self._execute_with_deadline(executor, node, context, timeout)
            else:
                envelope = await executor.execute(node, context)
        except Exception as e:
            logger.exception("Node '%s' raised %s", node.id, e.__class__.__name__)
            envelope = ResultEnvelope(
                error=ErrorInfo(
                    message=str(e) or e.__class__.__name__,
                    type=e.__class__.__name__,
                    stack_trace=traceback.format_exc(),
                    cause=repr(e.__cause__) if e.__cause__ is not None else None,
                ),
                meta={"nodeId": node.id, "type": node.type},
            )

        context.set_node_result(node.id, envelope)
        context.log_node_end(node.id, envelope, entry)
        logger.info(
            "Completed node id='%s' status=%s", node.id, "OK" if envelope.ok else "ERROR"
        )
        return envelope

    async def _execute_with_deadline(
        self,
        executor: NodeExecutor,
        node: NodeDefinition,
        context: ExecutionContext,
        timeout: float,
    ) -> ResultEnvelope:
        """
        Run an executor under the node deadline.

        Only an expired deadline becomes a ``Timeout`` error; a TimeoutError raised
        by the executor itself propagates like any other exception.
        """
        task = asyncio.ensure_future(executor.execute(node, context))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        finally:
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()

        logger.warning("Node '%s' exceeded its %ss deadline", node.id, timeout)
        return ResultEnvelope(
            error=ErrorInfo(
                message=f"Node '{node.id}' timed out after {timeout}s",
                type="Timeout",
            ),
            meta={"nodeId": node.id, "type": node.type},
        )

    def _select_next(
        self, node: NodeDefinition, context: ExecutionContext, visited: dict[str, None]
    ) -> list[str]:
        """Targets of passing edges, in declaration order."""
        selected: list[str] = []
        for edge in node.next:
            target = (edge.next_node_id or "").strip()
            if not target:
                continue

            if edge.is_conditional:
                outcome = self.engine.evaluate(edge.invoke_condition, context, node.id)
                if not outcome:
                    logger.debug(
                        "Edge %s -> %s rejected: %r evaluated to %r",
                        node.id,
                        target,
                        edge.invoke_condition,
                        outcome,
                    )
                    continue

            if target in visited:
                logger.debug("Edge %s -> %s ignored: target already visited", node.id, target)
                continue

            logger.info("Next node selected: %s -> %s", node.id, target)
            selected.append(target)
        return selected
