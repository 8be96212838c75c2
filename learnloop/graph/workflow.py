"""LangGraph workflow deleting ancestors left without approved questions."""

import logging
from typing import Literal

from langgraph.graph import END, StateGraph

from learnloop.graph.state import AncestorOutcome, CascadeState, create_initial_state
from learnloop.store.base import QuestionStore

logger = logging.getLogger(__name__)


async def evaluate_variation(store: QuestionStore, variation_id: str) -> AncestorOutcome:
    """
    Delete a variation if none of its questions is approved.

    Safe to re-run: a variation that is already gone is reported as such.

    Args:
        store: Question store
        variation_id: Variation to evaluate

    Returns:
        What happened to the variation
    """
    remaining = await store.count_approved_for_variation(variation_id)
    if remaining > 0:
        logger.debug("Variation %s keeps %d approved question(s)", variation_id, remaining)
        return AncestorOutcome.KEPT

    if await store.hard_delete_variation(variation_id):
        logger.info("Deleted variation %s: no approved questions left", variation_id)
        return AncestorOutcome.DELETED
    return AncestorOutcome.ALREADY_GONE


async def evaluate_template(store: QuestionStore, template_id: str) -> AncestorOutcome:
    """
    Delete a template if none of its questions is approved.

    Counts every remaining question of the template, whether it belongs to a
    variation or to the template directly. Safe to re-run.

    Args:
        store: Question store
        template_id: Template to evaluate

    Returns:
        What happened to the template
    """
    template = await store.find_template_by_id(template_id)
    if template is None:
        return AncestorOutcome.ALREADY_GONE

    remaining = await store.count_approved_for_template(template_id)
    if remaining > 0:
        logger.debug("Template %s keeps %d approved question(s)", template_id, remaining)
        return AncestorOutcome.KEPT

    if await store.hard_delete_template(template_id):
        logger.info("Deleted template %s: no approved questions left", template_id)
        return AncestorOutcome.DELETED
    return AncestorOutcome.ALREADY_GONE


def after_load(state: CascadeState) -> Literal["delete_question", "end"]:
    """
    Stop when the question is already gone.

    Args:
        state: Current cascade state

    Returns:
        Next node to execute
    """
    if state["question"] is None:
        return "end"
    return "delete_question"


def after_delete(state: CascadeState) -> Literal["variation", "template"]:
    """Evaluate the variation first when the question belonged to one."""
    if state["question"].variation_id:
        return "variation"
    return "template"


def after_variation(state: CascadeState) -> Literal["template", "end"]:
    """Only an emptied variation puts its template up for evaluation."""
    if state["variation_outcome"] == AncestorOutcome.KEPT:
        return "end"
    return "template"


def create_cascade_workflow(store: QuestionStore) -> StateGraph:
    """
    Create the cascade workflow for a rejected question.

    The workflow is a saga of idempotent steps:
    1. Load question - stop if it no longer exists
    2. Delete question
    3. [Conditional] Evaluate its variation
    4. [Conditional] Evaluate its template

    Args:
        store: Question store the steps read from and delete in

    Returns:
        StateGraph ready to compile
    """

    async def load_question(state: CascadeState) -> dict:
        question = await store.find_question_by_id(state["question_id"])
        if question is None:
            logger.info("Question %s already deleted; nothing to cascade", state["question_id"])
        return {"question": question}

    async def delete_question(state: CascadeState) -> dict:
        question_id = state["question_id"]
        deleted = await store.hard_delete_question(question_id)
        return {
            "deleted_question_ids": state["deleted_question_ids"] + ([question_id] if deleted else []),
        }

    async def variation_step(state: CascadeState) -> dict:
        variation_id = state["question"].variation_id
        outcome = await evaluate_variation(store, variation_id)
        deleted = [variation_id] if outcome == AncestorOutcome.DELETED else []
        return {
            "variation_outcome": outcome,
            "deleted_variation_ids": state["deleted_variation_ids"] + deleted,
        }

    async def template_step(state: CascadeState) -> dict:
        template_id = state["question"].template_id
        outcome = await evaluate_template(store, template_id)
        deleted = [template_id] if outcome == AncestorOutcome.DELETED else []
        return {
            "template_outcome": outcome,
            "deleted_template_ids": state["deleted_template_ids"] + deleted,
        }

    workflow = StateGraph(CascadeState)

    workflow.add_node("load_question", load_question)
    workflow.add_node("delete_question", delete_question)
    workflow.add_node("evaluate_variation", variation_step)
    workflow.add_node("evaluate_template", template_step)

    workflow.set_entry_point("load_question")

    workflow.add_conditional_edges(
        "load_question",
        after_load,
        {
            "delete_question": "delete_question",
            "end": END,
        },
    )
    workflow.add_conditional_edges(
        "delete_question",
        after_delete,
        {
            "variation": "evaluate_variation",
            "template": "evaluate_template",
        },
    )
    workflow.add_conditional_edges(
        "evaluate_variation",
        after_variation,
        {
            "template": "evaluate_template",
            "end": END,
        },
    )
    workflow.add_edge("evaluate_template", END)

    return workflow


def compile_workflow(store: QuestionStore):
    """
    Compile the cascade workflow for a store.

    Returns:
        Compiled workflow
    """
    return create_cascade_workflow(store).compile()


async def run_cascade(store: QuestionStore, question_id: str) -> CascadeState:
    """
    Delete a rejected question and any ancestor it leaves without approved questions.

    Args:
        store: Question store
        question_id: The rejected question

    Returns:
        Final cascade state listing what was deleted
    """
    workflow = compile_workflow(store)
    return await workflow.ainvoke(create_initial_state(question_id))
