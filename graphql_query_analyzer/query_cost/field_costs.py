# Copyright 2021-present Kensho Technologies, LLC.
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Union

from funcy import walk_values

from ..typedefs import ArgumentValues, Number


@dataclass(frozen=True)
class ConstantCost:
    """A field cost that does not depend on the field's arguments."""

    value: Number


@dataclass(frozen=True)
class DynamicCost:
    """A field cost computed from the field's resolved argument values.

    For example, a paginated field may be defined as DynamicCost(lambda args: args.get("limit", 10))
    so that requesting more items costs more.
    """

    function: Callable[[ArgumentValues], Number]


FieldCost = Union[ConstantCost, DynamicCost]

# Mapping of "ParentTypeName.fieldName" -> cost of selecting that field. Keys are matched exactly.
FieldCostTable = Mapping[str, FieldCost]


def get_field_cost_key(parent_type_name: str, field_name: str) -> str:
    """Return the key under which the cost of the given field is found in a FieldCostTable."""
    return "{}.{}".format(parent_type_name, field_name)


def as_field_cost(cost: Union[FieldCost, Number, Callable[[ArgumentValues], Number]]) -> FieldCost:
    """Wrap a plain number or function into the corresponding FieldCost."""
    if isinstance(cost, (ConstantCost, DynamicCost)):
        return cost
    elif isinstance(cost, bool):
        raise TypeError(
            "Expected a number or a function as field cost, got a bool: {}".format(cost)
        )
    elif isinstance(cost, (int, float)):
        return ConstantCost(cost)
    elif callable(cost):
        return DynamicCost(cost)

    raise TypeError(
        "Expected a number or a function as field cost, got {} of type {}.".format(
            cost, type(cost).__name__
        )
    )


def make_field_cost_table(
    costs: Mapping[str, Union[FieldCost, Number, Callable[[ArgumentValues], Number]]]
) -> Dict[str, FieldCost]:
    """Build a FieldCostTable from a mapping whose values are numbers, functions or FieldCosts."""
    return walk_values(as_field_cost, dict(costs))


def resolve_field_cost(
    field_costs: FieldCostTable,
    parent_type_name: str,
    field_name: str,
    arguments: ArgumentValues,
    default_cost: Number,
) -> Number:
    """Return the cost of selecting the field with the given arguments.

    Args:
        field_costs: costs of the fields that do not have the default cost
        parent_type_name: name of the type on which the field is selected
        field_name: name of the selected field
        arguments: the field's argument values, with any variables already substituted
        default_cost: cost of fields absent from field_costs

    Returns:
        the cost of the field selection
    """
    field_cost = field_costs.get(get_field_cost_key(parent_type_name, field_name))
    if field_cost is None:
        return default_cost
    elif isinstance(field_cost, ConstantCost):
        return field_cost.value
    elif isinstance(field_cost, DynamicCost):
        return field_cost.function(arguments)

    raise AssertionError(
        "Unexpected field cost {} for field {}.{}. Use make_field_cost_table() to build "
        "field cost tables from numbers and functions.".format(
            field_cost, parent_type_name, field_name
        )
    )
