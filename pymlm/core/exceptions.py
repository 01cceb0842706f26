"""
Errors and warnings raised by pymlm.

Everything derives from PyMLMError. Bad input (shapes, non-distance
matrices, unknown options) raises a ValidationError and aborts the
analysis. Numerical failures carry the quantities needed to diagnose
them as attributes: the spectrum for a failed projection, the rank of a
collinear design, the last accuracy and fault code of a p-value that
would not converge.
"""


class PyMLMError(Exception):
    """Root of the pymlm exception hierarchy."""


class ValidationError(PyMLMError):
    """Invalid user input: wrong types, missing options, bad factor levels."""


class DimensionError(ValidationError):
    """Arrays with the wrong number of dimensions or mismatched row counts."""


class InputError(ValidationError):
    """
    Dissimilarity input is not a valid distance matrix.

    Raised for non-square or non-symmetric matrices, negative
    dissimilarities beyond tolerance, and unknown distance methods.
    """


class NumericalError(PyMLMError):
    """A projection or model fit broke down numerically."""


class SingularMatrixError(NumericalError):
    """
    The model matrix is rank-deficient.

    Raised by the QR solve when explanatory variables are collinear, so
    term coefficients (and hence hypothesis SSCPs) are not identified.

    Attributes:
        matrix_name: Matrix that failed, usually 'X'
        condition_number: Estimated condition number, if available
        rank: Numerical rank found by the pivoted QR
        expected_rank: Number of model matrix columns
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class ProjectionError(NumericalError):
    """
    A distance matrix could not be projected into Euclidean space.

    Raised by the Gower projection when the spectrum of the double-centred
    matrix does not describe a usable Euclidean configuration.

    Attributes:
        reason: 'non_positive_leading_eigenvalue', 'negative_eigenvalue'
            or 'degenerate_rank'
        leading_eigenvalue: Largest eigenvalue of G (unnormalised)
        n_retained: Eigenvalues left after the tolerance filter
        min_eigenvalue: Smallest retained normalised eigenvalue, if any
    """

    def __init__(
        self,
        message: str,
        reason: str,
        leading_eigenvalue: float | None = None,
        n_retained: int | None = None,
        min_eigenvalue: float | None = None
    ):
        super().__init__(message)
        self.reason = reason
        self.leading_eigenvalue = leading_eigenvalue
        self.n_retained = n_retained
        self.min_eigenvalue = min_eigenvalue


class ConvergenceError(PyMLMError):
    """
    A p-value could not be computed to any acceptable accuracy.

    Raised when Davies' method cannot produce a valid probability even
    after the accuracy has been relaxed the maximum number of times.

    Attributes:
        iterations: Number of accuracy escalations attempted
        accuracy: Last accuracy requested from Davies' method
        reason: Why convergence failed (e.g., 'max_steps')
        ifault: Last fault code reported by Davies' method
        term: Model term the p-value belongs to, if known
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        accuracy: float | None = None,
        reason: str | None = None,
        ifault: int | None = None,
        term: str | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.accuracy = accuracy
        self.reason = reason
        self.ifault = ifault
        self.term = term


class DecompositionWarning(UserWarning):
    """
    Sums of squares were computed under a questionable coding.

    Issued for Type III decompositions when an unordered factor uses
    non-orthogonal (treatment) coding. Computation proceeds.
    """
