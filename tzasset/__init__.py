"""tzasset -- builds and validates Trainz assets through TrainzUtil."""

__version__ = "0.3.0"
