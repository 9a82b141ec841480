"""
Diagram Positions
=================

Keeps diagram element positions attached to model elements while the model
text is edited and reparsed. Positions are keyed by stable identity, so a
renamed entity keeps its box and a newly created one appears where the user
dropped it.
"""

from dataclasses import field

from astid import IdentityRegistry, Node, from_json, to_json


# ============================================================================
# Model
# ============================================================================

class Attribute(Node, tag="Attribute"):
    name: str


class Entity(Node, tag="Entity"):
    name: str
    attributes: list[Attribute] = field(default_factory=list)


class Model(Node, tag="Model"):
    entities: list[Entity] = field(default_factory=list)


def parse_v1() -> Model:
    return Model(entities=[
        Entity("Customer", [Attribute("id"), Attribute("email")]),
        Entity("Order", [Attribute("id")]),
    ])


def parse_v2() -> Model:
    # Customer renamed to Client, Invoice created from the diagram
    return Model(entities=[
        Entity("Client", [Attribute("id"), Attribute("email")]),
        Entity("Order", [Attribute("id")]),
        Entity("Invoice"),
    ])


# ============================================================================
# Example
# ============================================================================

def main():
    registry = IdentityRegistry()

    model = parse_v1()
    registry.reconcile(model)
    positions = {
        registry.get_identity(entity): (100 + 200 * i, 80)
        for i, entity in enumerate(model.entities)
    }
    print("Positions after first parse:")
    for entity in model.entities:
        print(f"  {entity.name}: {positions[registry.get_identity(entity)]}")
    print()

    # The user drops a new entity at (300, 300); register its identity
    # before the text edit is applied and reparsed.
    invoice_id = registry.pre_register_child(model, "entities", "Entity", name="Invoice")
    positions[invoice_id] = (300, 300)

    # Persist between editor sessions
    saved = to_json(registry)
    registry = IdentityRegistry()
    registry.load_state(from_json(saved))

    model = parse_v2()
    result = registry.reconcile(model)
    print(f"Reconciled: {result.exact} exact, {result.fuzzy} fuzzy, {result.fresh} new")
    print("Positions after rename and create:")
    for entity in model.entities:
        print(f"  {entity.name}: {positions.get(registry.get_identity(entity))}")


if __name__ == "__main__":
    main()
