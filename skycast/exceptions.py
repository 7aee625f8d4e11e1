"""Error taxonomy for the forecasting core."""


class SkyCastError(Exception):
    """Base class for every failure raised by the core."""


class MalformedInputError(SkyCastError, ValueError):
    """Input rows or vectors that cannot be parsed into the expected shape."""


class InsufficientDataError(SkyCastError, ValueError):
    """Too few rows to build at least one training example."""


class NumericInstabilityError(SkyCastError, ArithmeticError):
    """Training loss became NaN or infinite."""

    def __init__(self, model_name, epoch, loss):
        self.model_name = model_name
        self.epoch = epoch
        self.loss = loss
        super().__init__(
            f"{model_name} loss diverged to {loss} at epoch {epoch}"
        )


class ModelNotReadyError(SkyCastError, RuntimeError):
    """Prediction requested before both models were trained."""


class TrainingInProgressError(SkyCastError, RuntimeError):
    """A second training run was started on a busy model slot."""


class TrainingCancelledError(SkyCastError):
    """Training was stopped through its cancel event."""
