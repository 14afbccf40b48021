"""qobjalg - Role-tagged quantum objects, structural transforms and steady states
===============================================================================
`qobjalg` represents states and operators of finite-dimensional composite
quantum systems as arrays tagged with their physical role and subsystem
factorization. On top of this it provides the matrix-function algebra, partial
traces and subsystem permutations, Lindblad super-operators, and a direct
steady-state solver with a Floquet extension for harmonically driven systems.

License : MIT
Version : 0.1.0
"""

from .functions import (
    broadcast,
    commutator,
    cosm,
    diag,
    dot,
    entropy_vn,
    expect,
    expm,
    inv,
    logm,
    matrix_element,
    norm,
    normalize,
    proj,
    purity,
    sinm,
    sqrtm,
    svdvals,
    tidyup,
    tr,
)
from .qobj import (
    DimensionMismatchError,
    IncompatibleRoleError,
    QuantumObject,
    Role,
)
from .settings import (
    CoreSettings,
    blas_threads,
    configure,
    set_blas_threads,
)
from .steadystate import (
    SteadyStateDirectSolver,
    SteadyStateError,
    SteadyStateSolver,
    steadystate,
    steadystate_floquet,
)
from .structure import (
    entanglement,
    mat2vec,
    negativity,
    operator_to_vector,
    partial_transpose,
    permute,
    ptrace,
    tensor,
    vec2mat,
    vector_to_operator,
)
from .superop import (
    lindblad_dissipator,
    liouvillian,
    liouvillian_floquet,
    spost,
    spre,
    sprepost,
)

__all__ = [
    # qobj
    "Role",
    "QuantumObject",
    "DimensionMismatchError",
    "IncompatibleRoleError",
    # functions
    "expm",
    "logm",
    "sqrtm",
    "sinm",
    "cosm",
    "inv",
    "norm",
    "normalize",
    "svdvals",
    "tr",
    "diag",
    "purity",
    "proj",
    "dot",
    "matrix_element",
    "expect",
    "commutator",
    "tidyup",
    "broadcast",
    "entropy_vn",
    # structure
    "tensor",
    "ptrace",
    "permute",
    "partial_transpose",
    "negativity",
    "entanglement",
    "mat2vec",
    "vec2mat",
    "operator_to_vector",
    "vector_to_operator",
    # superop
    "spre",
    "spost",
    "sprepost",
    "lindblad_dissipator",
    "liouvillian",
    "liouvillian_floquet",
    # steadystate
    "SteadyStateSolver",
    "SteadyStateDirectSolver",
    "SteadyStateError",
    "steadystate",
    "steadystate_floquet",
    # settings
    "CoreSettings",
    "configure",
    "set_blas_threads",
    "blas_threads",
]
