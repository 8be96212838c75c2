"""Agents that draft templates, instance them and review the results."""

from learnloop.agents.evaluator import evaluate_question
from learnloop.agents.generator import InstanceBatch, generate_instances, generate_local_instances
from learnloop.agents.structurer import generate_template_structure

__all__ = [
    "evaluate_question",
    "generate_instances",
    "generate_local_instances",
    "generate_template_structure",
    "InstanceBatch",
]
