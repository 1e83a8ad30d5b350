import json

import pytest
from pydantic import ValidationError

from buildsmith.agent.planner import MAX_EXTRA_COMPONENTS, MAX_PAGES, ProjectPlanner, to_component_name
from buildsmith.agent.stacks import REACT_VITE_TAILWIND
from buildsmith.agent.state import GenerationPlan
from buildsmith.errors import TransientServiceError

from conftest import FakeAIService


@pytest.mark.asyncio
async def test_plan_merges_suggested_components() -> None:
    ai = FakeAIService(['{"pages": ["home"], "components": ["pricing table", "Hero", "FAQ"], "features": ["booking"]}'])

    plan = await ProjectPlanner(ai).plan("Spa", "Day spa with online booking")

    assert plan.required_components[: len(REACT_VITE_TAILWIND.required_components)] == REACT_VITE_TAILWIND.required_components
    assert plan.required_components[-2:] == ("PricingTable", "FAQ")
    assert plan.features == ("booking",)
    assert plan.pages == ("Home",)
    assert plan.required_files == REACT_VITE_TAILWIND.required_files + ("src/pages/Home.tsx",)
    assert "Day spa with online booking" in ai.prompts[0]


@pytest.mark.asyncio
async def test_recovered_analysis_is_used() -> None:
    ai = FakeAIService(['Sure!\n```json\n{"components": ["Team",],}\n```'], tokens=42)
    planner = ProjectPlanner(ai)

    plan = await planner.plan("Agency", "Design agency")

    assert plan.required_components[-1] == "Team"
    assert planner.tokens_used == 42


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "script",
    [
        ["I would build a nice site."],
        ['{"components": "Hero"}'],
        [TransientServiceError("503")],
    ],
)
async def test_unusable_analysis_falls_back_to_stack_defaults(script) -> None:
    plan = await ProjectPlanner(FakeAIService(script)).plan("Shop", "Online shop")

    assert plan == GenerationPlan.for_stack("Shop", "Online shop")


@pytest.mark.asyncio
async def test_extra_components_are_capped() -> None:
    names = ", ".join(f'"Widget{i}"' for i in range(20))
    plan = await ProjectPlanner(FakeAIService([f'{{"components": [{names}]}}'])).plan("Big", "Many widgets")

    assert len(plan.required_components) == len(REACT_VITE_TAILWIND.required_components) + MAX_EXTRA_COMPONENTS


@pytest.mark.asyncio
async def test_pages_are_named_deduplicated_and_capped() -> None:
    pages = ["about us", "About Us", "3d", "Menu"] + [f"Extra{i}" for i in range(10)]
    ai = FakeAIService([json.dumps({"pages": pages})])

    plan = await ProjectPlanner(ai).plan("Cafe", "Neighbourhood cafe")

    assert plan.pages[:2] == ("AboutUs", "Menu")
    assert len(plan.pages) == MAX_PAGES
    assert "src/pages/AboutUs.tsx" in plan.required_files


@pytest.mark.parametrize(
    "raw, expected",
    [("pricing table", "PricingTable"), ("Hero.tsx", "Hero"), ("3d-viewer", ""), ("", ""), ("FAQ", "FAQ")],
)
def test_to_component_name(raw: str, expected: str) -> None:
    assert to_component_name(raw) == expected


def test_plan_rejects_non_pascal_case_components() -> None:
    with pytest.raises(ValidationError):
        GenerationPlan(project_name="Demo", required_components=("hero",))


def test_plan_requires_a_name() -> None:
    with pytest.raises(ValidationError):
        GenerationPlan(project_name="")
