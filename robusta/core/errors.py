"""Exception hierarchy for robust estimators."""


class RobustEstimatorError(Exception):
    """Base class for every error raised by a robust estimator."""


class ConfigurationError(RobustEstimatorError, ValueError):
    """Invalid parameter or inconsistent data supplied to an estimator.

    Raised synchronously by constructors and setters. The estimator state is
    left untouched.
    """


class NotReadyError(RobustEstimatorError):
    """Estimation requested before the required data has been provided."""


class LockedError(RobustEstimatorError):
    """Estimator is running and cannot be modified or restarted."""


class EstimationFailure(RobustEstimatorError):
    """No valid model could be estimated."""


class DegenerateSampleError(RobustEstimatorError):
    """A minimal sample does not determine a model.

    Adapters raise this (or return no models) for coincident or collinear
    samples. The engine discards the sample and draws another one.
    """
