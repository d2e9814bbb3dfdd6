class DemoError(Exception):
    """Base class for errors raised by the sampling distribution demo."""


class InvalidInputError(DemoError, ValueError):
    """A value entered through the controls was rejected before any state changed."""


class InvalidSampleSizeError(InvalidInputError):

    def __init__(self, value, low: int, high: int):
        self.value = value
        super().__init__(f"Please enter an integer between {low} and {high} as a sample size")


class InvalidRepetitionsError(InvalidInputError):

    def __init__(self, value, choices):
        self.value = value
        options = ", ".join(str(c) for c in choices)
        super().__init__(f"Number of samples must be one of: {options}")


class InvalidPopulationError(InvalidInputError):

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown population: {value}")


class SdmUnavailableError(DemoError):

    def __init__(self):
        super().__init__("Sorry, this demo can only display the sampling distribution "
                         "of the mean when the population is normal.")


class SamplingError(DemoError, ValueError):
    """A sample could not be drawn or summarised."""
