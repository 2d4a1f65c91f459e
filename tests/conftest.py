"""Global test fixtures for mission engine tests"""
import pytest
from datetime import date

from mission_engine.missions.aggregator import InMemoryTrackingAggregator
from mission_engine.missions.memory import InMemoryInstanceStore, InMemoryMissionCatalog
from mission_engine.models.mission import (
    MetricKey,
    MissionCategory,
    MissionDifficulty,
    MissionTemplate,
    TrackingBinding,
)
from mission_engine.services.mission_service import MissionService


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest.fixture
def water_template():
    """Drink 8 glasses, 15 points"""
    return MissionTemplate(
        id=1,
        title="Drink 8 Glasses of Water",
        category=MissionCategory.HEALTH_TRACKING,
        sub_category=MetricKey.WATER_GLASSES,
        unit="glasses",
        target_value=8,
        points=15,
        tracking_binding=TrackingBinding.for_metric(MetricKey.WATER_GLASSES),
        difficulty=MissionDifficulty.EASY,
    )


@pytest.fixture
def second_water_template():
    """Another glasses mission sharing the WATER_GLASSES aggregate"""
    return MissionTemplate(
        id=2,
        title="Drink 4 Glasses Before Noon",
        category=MissionCategory.HEALTH_TRACKING,
        sub_category=MetricKey.WATER_GLASSES,
        unit="glasses",
        target_value=4,
        points=5,
        tracking_binding=TrackingBinding.for_metric(MetricKey.WATER_GLASSES),
        difficulty=MissionDifficulty.EASY,
    )


@pytest.fixture
def steps_template():
    """Walk 10,000 steps, 25 points"""
    return MissionTemplate(
        id=3,
        title="Walk 10,000 Steps",
        category=MissionCategory.FITNESS,
        sub_category=MetricKey.STEPS,
        unit="steps",
        target_value=10000,
        points=25,
        tracking_binding=TrackingBinding.for_metric(MetricKey.STEPS),
        difficulty=MissionDifficulty.MEDIUM,
    )


@pytest.fixture
def broken_template():
    """Catalog entry with a zero target"""
    return MissionTemplate(
        id=9,
        title="Broken Mission",
        category=MissionCategory.FITNESS,
        sub_category=MetricKey.STEPS,
        unit="steps",
        target_value=0,
        points=10,
        tracking_binding=TrackingBinding.for_metric(MetricKey.STEPS),
    )


@pytest.fixture
def retired_template():
    """Template the catalog admin switched off"""
    return MissionTemplate(
        id=10,
        title="Retired Mission",
        category=MissionCategory.NUTRITION,
        sub_category=MetricKey.FRUIT_SERVINGS,
        unit="servings",
        target_value=3,
        points=10,
        tracking_binding=TrackingBinding.for_metric(MetricKey.FRUIT_SERVINGS),
        is_active=False,
    )


@pytest.fixture
def catalog(water_template, second_water_template, steps_template, broken_template, retired_template):
    return InMemoryMissionCatalog([
        water_template, second_water_template, steps_template, broken_template, retired_template
    ])


# ============================================================================
# Store & Service Fixtures
# ============================================================================

@pytest.fixture
def store():
    return InMemoryInstanceStore()


@pytest.fixture
def aggregator():
    return InMemoryTrackingAggregator()


@pytest.fixture
def mission_service(catalog, store, aggregator):
    """MissionService over in-memory collaborators"""
    return MissionService(catalog, store, aggregator, max_save_retries=5, auto_update_timeout=1.0)


@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def mission_date():
    """Standard mission date"""
    return date(2025, 8, 22)
