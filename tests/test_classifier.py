import json

import pytest

from omnisearch.core.models import CONFIRMED, INFERRED, Candidate, ErrorLog
from omnisearch.pipeline.classifier import (
    BatchClassifier,
    direct_channel,
    entity_from_item,
    listing_channel,
    partition,
)


class BatchModel:
    """Echoes one entity per candidate found in the prompt's INPUT DATA block."""

    def __init__(self, failing_models=(), reply=None):
        self.failing_models = set(failing_models)
        self.reply = reply
        self.calls = []

    async def generate(self, prompt, model):
        self.calls.append(model)
        if model in self.failing_models:
            raise RuntimeError(f"{model} overloaded")
        if self.reply is not None:
            return self.reply
        batch = json.loads(prompt.split("INPUT DATA:")[1].split("RESPONSE FORMAT")[0])
        entities = [
            {"name": item["title"], "handle": None, "category": "club", "url": item["link"], "reasoning": "match"}
            for item in batch
        ]
        return "```json\n" + json.dumps(entities) + "\n```"


def _candidates(count):
    return [Candidate(title=f"Club {i}", link=f"https://www.instagram.com/club{i}/") for i in range(count)]


def test_partition_is_contiguous():
    batches = partition(_candidates(7), 3)

    assert [len(b) for b in batches] == [3, 3, 1]
    assert batches[1][0].title == "Club 3"
    with pytest.raises(ValueError):
        partition(_candidates(1), 0)


@pytest.mark.asyncio
async def test_one_model_call_per_batch():
    model = BatchModel()
    classifier = BatchClassifier(model, "primary", "fallback", direct_channel(batch_size=50))

    entities = await classifier.classify(_candidates(120), "run clubs in Vizag", "Visakhapatnam")

    assert model.calls == ["primary"] * 3
    assert len(entities) == 120
    assert entities[0].category == "Club"
    assert entities[0].trust == CONFIRMED


@pytest.mark.asyncio
async def test_primary_failure_triggers_one_fallback_per_batch():
    model = BatchModel(failing_models={"primary"})
    classifier = BatchClassifier(model, "primary", "fallback", direct_channel(batch_size=50))

    entities = await classifier.classify(_candidates(120), "q", "loc")

    assert model.calls.count("primary") == 3
    assert model.calls.count("fallback") == 3
    assert len(entities) == 120


@pytest.mark.asyncio
async def test_batch_abandoned_when_both_tiers_fail():
    model = BatchModel(failing_models={"primary", "fallback"})
    classifier = BatchClassifier(model, "primary", "fallback", listing_channel(batch_size=10))
    errors = ErrorLog()

    entities = await classifier.classify(_candidates(25), "q", "loc", errors)

    assert entities == []
    assert len(model.calls) == 6
    assert len(errors) == 3
    assert errors.as_list()[0].startswith("listing batch")


@pytest.mark.asyncio
async def test_unparsable_batch_contributes_nothing():
    model = BatchModel(reply="I could not find any clubs.")
    classifier = BatchClassifier(model, "primary", "fallback", direct_channel())
    errors = ErrorLog()

    assert await classifier.classify(_candidates(3), "q", "loc", errors) == []
    assert model.calls == ["primary"]
    assert len(errors) == 1


@pytest.mark.asyncio
async def test_no_candidates_means_no_calls():
    model = BatchModel()
    classifier = BatchClassifier(model, "primary", "fallback", direct_channel())

    assert await classifier.classify([], "q", "loc") == []
    assert model.calls == []


@pytest.mark.asyncio
async def test_listing_batch_may_yield_many_entities():
    reply = json.dumps(
        [
            {"name": "Vizag Runners", "handle": "null", "category": "Community"},
            {"name": "Beach Cyclists", "category": "Bike Gang"},
            {"handle": "@noname"},
        ]
    )
    classifier = BatchClassifier(BatchModel(reply=reply), "primary", "fallback", listing_channel())

    entities = await classifier.classify(_candidates(1), "q", "loc")

    assert [e.name for e in entities] == ["Vizag Runners", "Beach Cyclists"]
    assert entities[0].handle is None
    assert entities[1].category == "Community"
    assert all(e.trust == INFERRED for e in entities)


def test_entity_from_item_normalizes_optional_fields():
    entity = entity_from_item(
        {
            "name": " Hyfit ",
            "handle": "@hyfit.vizag",
            "category": "HYBRID STUDIO",
            "followers": 1200,
            "logo": "",
            "url": "https://www.instagram.com/hyfit.vizag/",
        },
        CONFIRMED,
    )

    assert entity.name == "Hyfit"
    assert entity.category == "Hybrid Studio"
    assert entity.followers == "1200"
    assert entity.logo is None
    assert entity.reasoning == ""
    assert entity_from_item("not a dict", CONFIRMED) is None
