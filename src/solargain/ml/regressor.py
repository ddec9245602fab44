"""Gradient-boosted sun-hours regressor built on xgboost.

Wraps :func:`xgboost.train` so the rest of the project only sees two calls:
``fit(features, targets, on_progress)`` and ``TrainedModel.predict(vector)``.
Boosting rounds play the role of epochs for progress reporting; the
``reg:logistic`` objective keeps predictions inside [0, 1] like the
normalized targets.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np
import xgboost as xgb

from solargain.core.debug import DebugCollector, NullDebugCollector
from solargain.core.errors import ModelTrainingFailure
from solargain.core.models import TrainingProgress
from solargain.weather.features import FEATURE_NAMES

DEFAULT_EPOCHS = 100
DEFAULT_VALIDATION_SPLIT = 0.2

ProgressCallback = Callable[[TrainingProgress], None]


@dataclass
class TrainedModel:
    booster: xgb.Booster
    history: List[TrainingProgress] = field(default_factory=list)
    n_train: int = 0
    n_validation: int = 0

    def predict(self, vector: Sequence[float]) -> float:
        """Normalized output in [0, 1] for one feature vector."""
        return float(self.predict_many(np.asarray(vector, dtype=float).reshape(1, -1))[0])

    def predict_many(self, matrix) -> np.ndarray:
        rows = np.asarray(matrix, dtype=float)
        try:
            return self.booster.predict(xgb.DMatrix(rows, feature_names=list(FEATURE_NAMES)))
        except xgb.core.XGBoostError as exc:
            raise ModelTrainingFailure(f"prediction failed: {exc}") from exc


class _ProgressCallback(xgb.callback.TrainingCallback):
    def __init__(self, total_epochs: int, on_progress: Optional[ProgressCallback], debug: DebugCollector):
        super().__init__()
        self.total_epochs = total_epochs
        self.on_progress = on_progress
        self.debug = debug
        self.history: List[TrainingProgress] = []

    def after_iteration(self, model, epoch: int, evals_log) -> bool:
        train_rmse = evals_log.get("train", {}).get("rmse", [])
        val_rmse = evals_log.get("validation", {}).get("rmse", [])
        progress = TrainingProgress(
            epoch=epoch + 1,
            total_epochs=self.total_epochs,
            loss=float(train_rmse[-1]) ** 2 if train_rmse else float("nan"),
            val_loss=float(val_rmse[-1]) ** 2 if val_rmse else None,
        )
        self.history.append(progress)
        self.debug.emit(
            "ml.progress",
            {"epoch": progress.epoch, "loss": progress.loss, "val_loss": progress.val_loss},
        )
        if self.on_progress is not None:
            self.on_progress(progress)
        return False


class SunHoursRegressor:
    """Train a regressor on normalized ``(features, target)`` pairs.

    The last ``validation_split`` share of rows is held out for the validation
    loss (rows are chronological, so this is the most recent data).
    """

    def __init__(
        self,
        epochs: int = DEFAULT_EPOCHS,
        learning_rate: float = 0.1,
        max_depth: int = 3,
        validation_split: float = DEFAULT_VALIDATION_SPLIT,
        seed: int = 42,
        debug: DebugCollector | None = None,
    ):
        if epochs < 1:
            raise ValueError("epochs must be at least 1")
        if not (0.0 <= validation_split < 1.0):
            raise ValueError("validation_split must be in [0, 1)")
        self.epochs = epochs
        self.learning_rate = learning_rate
        self.max_depth = max_depth
        self.validation_split = validation_split
        self.seed = seed
        self.debug = debug or NullDebugCollector()

    def _params(self) -> dict:
        return {
            "objective": "reg:logistic",
            "eval_metric": "rmse",
            "eta": self.learning_rate,
            "max_depth": self.max_depth,
            "seed": self.seed,
            "nthread": 1,
        }

    def _split(self, n_rows: int) -> int:
        n_val = int(n_rows * self.validation_split)
        return n_rows - min(n_val, n_rows - 1)

    def fit(self, features, targets, on_progress: Optional[ProgressCallback] = None) -> TrainedModel:
        X = np.asarray(features, dtype=float)
        y = np.asarray(targets, dtype=float).ravel()
        if X.ndim != 2 or X.shape[0] == 0:
            raise ModelTrainingFailure("no training data")
        if X.shape[1] != len(FEATURE_NAMES):
            raise ModelTrainingFailure(f"expected {len(FEATURE_NAMES)} features, got {X.shape[1]}")
        if y.shape[0] != X.shape[0]:
            raise ModelTrainingFailure("features and targets differ in length")
        if not (np.isfinite(X).all() and np.isfinite(y).all()):
            raise ModelTrainingFailure("training data contains NaN or infinite values")
        y = np.clip(y, 0.0, 1.0)

        split = self._split(X.shape[0])
        names = list(FEATURE_NAMES)
        dtrain = xgb.DMatrix(X[:split], label=y[:split], feature_names=names)
        evals = [(dtrain, "train")]
        if split < X.shape[0]:
            evals.append((xgb.DMatrix(X[split:], label=y[split:], feature_names=names), "validation"))

        callback = _ProgressCallback(self.epochs, on_progress, self.debug)
        try:
            booster = xgb.train(
                self._params(),
                dtrain,
                num_boost_round=self.epochs,
                evals=evals,
                verbose_eval=False,
                callbacks=[callback],
            )
        except xgb.core.XGBoostError as exc:
            raise ModelTrainingFailure(f"training failed: {exc}") from exc

        return TrainedModel(
            booster=booster,
            history=callback.history,
            n_train=split,
            n_validation=X.shape[0] - split,
        )


__all__ = ["SunHoursRegressor", "TrainedModel", "ProgressCallback", "DEFAULT_EPOCHS", "DEFAULT_VALIDATION_SPLIT"]
