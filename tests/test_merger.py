from omnisearch.core.models import INFERRED, Candidate, ClassifiedEntity
from omnisearch.pipeline.merger import find_source_candidate, merge


def _entity(handle, name=None, **kwargs):
    return ClassifiedEntity(name=name or f"Name {handle}", handle=handle, **kwargs)


def test_secondary_duplicate_by_handle_is_dropped():
    primary = [_entity("a"), _entity("b")]
    secondary = [_entity("a", name="Other A"), _entity("c")]

    merged = merge(primary, secondary, [])

    assert [e.handle for e in merged] == ["a", "b", "c"]
    assert merged[0].name == "Name a"


def test_handle_comparison_ignores_case_and_at_sign():
    merged = merge([_entity("@VizagRunners")], [_entity("vizagrunners")], [])

    assert len(merged) == 1


def test_name_collision_on_null_handles():
    primary = [ClassifiedEntity(name="Vizag Runners")]
    secondary = [ClassifiedEntity(name="vizag runners", trust=INFERRED)]

    merged = merge(primary, secondary, [])

    assert len(merged) == 1
    assert merged[0].name == "Vizag Runners"


def test_name_only_entity_coexists_with_confirmed_handles():
    primary = [_entity("vizagrunners", name="Vizag Runners")]
    secondary = [
        ClassifiedEntity(name="Beach Road Cyclists", trust=INFERRED),
        ClassifiedEntity(name="BEACH ROAD CYCLISTS", trust=INFERRED),
    ]

    merged = merge(primary, secondary, [])

    assert [e.name for e in merged] == ["Vizag Runners", "Beach Road Cyclists"]


def test_logo_recovered_from_source_candidates():
    candidates = [
        Candidate(title="x", link="https://www.instagram.com/other/", logo_url="https://img/other.jpg"),
        Candidate(
            title="Sole Mates",
            link="https://www.instagram.com/solemates__runclub/",
            logo_url="https://img/solemates.jpg",
            layer="Community",
            strategy="platform-direct",
            channel="direct",
        ),
        Candidate(title="Culture", link="https://www.instagram.com/culture.runclub_/", logo_url="https://img/culture.jpg"),
    ]
    primary = [
        _entity("@solemates__runclub"),
        _entity(None, name="Culture Run Club", url="https://www.instagram.com/culture.runclub_/"),
        _entity("@kept", logo="https://img/model.jpg"),
        _entity("@nowhere"),
    ]

    merged = merge(primary, [], candidates)

    assert merged[0].logo == "https://img/solemates.jpg"
    assert merged[0].layer == "Community"
    assert merged[0].strategy == "platform-direct"
    assert merged[1].logo == "https://img/culture.jpg"
    assert merged[2].logo == "https://img/model.jpg"
    assert merged[3].logo is None
    assert merged[3].layer == "Unknown"


def test_blank_handle_never_matches_every_candidate():
    candidates = [Candidate(title="x", link="https://www.instagram.com/x/", logo_url="https://img/x.jpg")]

    assert find_source_candidate(_entity("@"), candidates) is None
