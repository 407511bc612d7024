import pytest

from backend.src.models.story import (
    Branch,
    Character,
    NodeType,
    Position,
    StoryDocument,
    StoryNode,
)
from backend.src.services.validator import StoryValidator


@pytest.fixture
def validator() -> StoryValidator:
    return StoryValidator()


def _minimal_story(**overrides) -> StoryDocument:
    fields = dict(
        title="Story",
        description="Desc",
        nodes=[StoryNode(id="root", title="T", content="C", is_root=True)],
    )
    fields.update(overrides)
    return StoryDocument(**fields)


def test_minimal_story_is_valid(validator: StoryValidator) -> None:
    assert validator.validate(_minimal_story()) == []


def test_empty_title_is_reported(validator: StoryValidator) -> None:
    errors = validator.validate(_minimal_story(title="   "))

    assert errors == ["Story title is required"]


def test_errors_are_collected_not_short_circuited(validator: StoryValidator) -> None:
    root = StoryNode(
        id="root",
        title="T",
        content="C",
        is_root=True,
        branches=[Branch(id="b1", text="go", target_id="nowhere")],
    )

    errors = validator.validate(_minimal_story(title="", nodes=[root]))

    assert len(errors) >= 2
    assert "Story title is required" in errors
    assert "Branch b1 on node root targets missing node nowhere" in errors


def test_story_info_length_limits(validator: StoryValidator) -> None:
    errors = validator.validate(_minimal_story(title="x" * 51, description="y" * 501))

    assert len(errors) == 2
    assert errors[0].startswith("Story title must be at most 50 characters")
    assert errors[1].startswith("Story description must be at most 500 characters")


def test_missing_nodes_title_and_description(validator: StoryValidator) -> None:
    errors = validator.validate(StoryDocument())

    assert errors == [
        "Story title is required",
        "Story description is required",
        "Story needs at least one node",
    ]


def test_root_count_must_be_exactly_one(validator: StoryValidator) -> None:
    no_root = _minimal_story(nodes=[StoryNode(id="a", title="T", content="C")])
    two_roots = _minimal_story(
        nodes=[
            StoryNode(id="a", title="T", content="C", is_root=True),
            StoryNode(id="b", title="T", content="C", is_root=True),
        ]
    )

    assert validator.validate(no_root) == ["Story is missing a root node"]
    assert validator.validate(two_roots) == ["Story has multiple root nodes (2)"]


def test_node_and_branch_fields_are_checked(validator: StoryValidator) -> None:
    root = StoryNode(
        id="root",
        title=" ",
        content="",
        is_root=True,
        position=Position(x=float("nan"), y=0),
        branches=[Branch(id="b1", text="", target_id="")],
    )

    errors = validator.validate(_minimal_story(nodes=[root]))

    assert errors == [
        "Node root title is required",
        "Node root content is required",
        "Node root position is invalid",
        "Branch b1 on node root text is required",
        "Branch b1 on node root has no target",
    ]


def test_character_checks(validator: StoryValidator) -> None:
    characters = [
        Character(id="c1", name=""),
        Character(id="c2", name="n" * 101, description="d" * 1001),
    ]

    errors = validator.validate(_minimal_story(characters=characters))

    assert errors == [
        "Character c1 name is required",
        "Character c2 name must be at most 100 characters",
        "Character c2 description must be at most 1000 characters",
    ]


def test_validation_does_not_modify_the_story(validator: StoryValidator) -> None:
    story = _minimal_story(title="")
    before = story.model_dump()

    validator.validate(story)

    assert story.model_dump() == before


def test_duplicate_node_and_branch_ids_are_reported(validator: StoryValidator) -> None:
    nodes = [
        StoryNode(
            id="root",
            title="T",
            content="C",
            is_root=True,
            branches=[Branch(id="b1", text="go", target_id="next")],
        ),
        StoryNode(
            id="next",
            title="T",
            content="C",
            branches=[Branch(id="b1", text="on", target_id="root")],
        ),
        StoryNode(id="next", title="T2", content="C2"),
    ]

    errors = validator.validate(_minimal_story(nodes=nodes))

    assert errors == [
        "Duplicate node id next",
        "Duplicate branch id b1 on node next",
    ]


def test_duplicate_character_ids_are_reported(validator: StoryValidator) -> None:
    characters = [Character(id="c1", name="Hero"), Character(id="c1", name="Villain")]

    assert validator.validate(_minimal_story(characters=characters)) == [
        "Duplicate character id c1"
    ]


def test_node_type_bounds_branch_count(validator: StoryValidator) -> None:
    leaf = StoryNode(id="leaf", title="T", content="C", type=NodeType.END)
    nodes = [
        StoryNode(
            id="root",
            title="T",
            content="C",
            is_root=True,
            branches=[
                Branch(id="b1", text="a", target_id="leaf"),
                Branch(id="b2", text="b", target_id="leaf"),
            ],
        ),
        StoryNode(
            id="done",
            title="T",
            content="C",
            type=NodeType.END,
            branches=[Branch(id="b3", text="again", target_id="root")],
        ),
        leaf,
    ]

    errors = validator.validate(_minimal_story(nodes=nodes))

    assert errors == [
        "Regular node root can only have one branch (2)",
        "End node done cannot have branches",
    ]


def test_choice_node_may_have_many_branches(validator: StoryValidator) -> None:
    nodes = [
        StoryNode(
            id="root",
            title="T",
            content="C",
            is_root=True,
            type=NodeType.BRANCH,
            branches=[
                Branch(id="b1", text="a", target_id="leaf"),
                Branch(id="b2", text="b", target_id="leaf"),
                Branch(id="b3", text="c", target_id="leaf"),
            ],
        ),
        StoryNode(id="leaf", title="T", content="C", type=NodeType.END),
    ]

    assert validator.validate(_minimal_story(nodes=nodes)) == []
