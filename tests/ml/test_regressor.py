import numpy as np
import pytest

from solargain.core.debug import ListDebugCollector
from solargain.core.errors import ModelTrainingFailure
from solargain.ml.regressor import SunHoursRegressor


def _dataset(n=60, seed=0):
    rng = np.random.default_rng(seed)
    X = rng.uniform(0, 1, size=(n, 4))
    # sunnier when cloudiness (column 2) is low
    y = np.clip(0.5 - 0.4 * X[:, 2] + rng.normal(0, 0.01, n), 0, 1)
    return X, y


def test_fit_reports_progress_per_epoch():
    X, y = _dataset()
    seen = []
    debug = ListDebugCollector()
    model = SunHoursRegressor(epochs=15, debug=debug).fit(X, y, on_progress=seen.append)

    assert [p.epoch for p in seen] == list(range(1, 16))
    assert all(p.total_epochs == 15 for p in seen)
    assert all(p.loss >= 0 and p.val_loss is not None for p in seen)
    assert seen[-1].loss < seen[0].loss
    assert model.history == seen
    assert (model.n_train, model.n_validation) == (48, 12)
    assert debug.stages().count("ml.progress") == 15


def test_predictions_follow_cloudiness_and_stay_normalized():
    X, y = _dataset(n=120)
    model = SunHoursRegressor(epochs=60).fit(X, y)
    clear = model.predict([0.5, 0.5, 0.0, 0.5])
    overcast = model.predict([0.5, 0.5, 1.0, 0.5])
    assert 0.0 <= overcast < clear <= 1.0
    assert model.predict_many(X[:5]).shape == (5,)


def test_no_validation_split():
    X, y = _dataset(n=10)
    seen = []
    model = SunHoursRegressor(epochs=3, validation_split=0.0).fit(X, y, on_progress=seen.append)
    assert model.n_validation == 0
    assert all(p.val_loss is None for p in seen)


@pytest.mark.parametrize(
    "features,targets",
    [
        (np.empty((0, 4)), np.empty(0)),
        (np.ones((5, 3)), np.ones(5)),
        (np.ones((5, 4)), np.ones(4)),
        (np.full((5, 4), np.nan), np.ones(5)),
    ],
)
def test_bad_training_data_raises(features, targets):
    with pytest.raises(ModelTrainingFailure):
        SunHoursRegressor(epochs=2).fit(features, targets)


def test_invalid_hyperparameters():
    with pytest.raises(ValueError):
        SunHoursRegressor(epochs=0)
    with pytest.raises(ValueError):
        SunHoursRegressor(validation_split=1.0)
