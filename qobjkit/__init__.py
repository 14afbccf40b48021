"""qobjkit - Operator/state factories and parameter sweeps for qobjalg
====================================================================
`qobjkit` builds the standard objects that `qobjalg` computations start from
(ladder, spin, Pauli and fermionic operators; Fock, coherent and random states)
and runs steady-state parameter sweeps in parallel with joblib.

License : MIT
Version : 0.1.0
"""

from .operators import (
    create,
    destroy,
    eye,
    fcreate,
    fdestroy,
    jmat,
    num,
    projection,
    qeye,
    sigmam,
    sigmap,
    sigmax,
    sigmay,
    sigmaz,
    spin_J_set,
    spin_Jm,
    spin_Jp,
    spin_Jx,
    spin_Jy,
    spin_Jz,
)
from .states import (
    basis,
    coherent,
    fock,
    fock_dm,
    ket2dm,
    get_coherence,
    maximally_mixed_dm,
    n_th,
    rand_dm,
)
from .sweep import (
    expect_sweep,
    steadystate_sweep,
)

__all__ = [
    # operators
    "destroy",
    "create",
    "num",
    "jmat",
    "spin_Jx",
    "spin_Jy",
    "spin_Jz",
    "spin_Jp",
    "spin_Jm",
    "spin_J_set",
    "sigmax",
    "sigmay",
    "sigmaz",
    "sigmap",
    "sigmam",
    "eye",
    "qeye",
    "projection",
    "fdestroy",
    "fcreate",
    # states
    "basis",
    "fock",
    "fock_dm",
    "coherent",
    "ket2dm",
    "maximally_mixed_dm",
    "rand_dm",
    "get_coherence",
    "n_th",
    # sweep
    "steadystate_sweep",
    "expect_sweep",
]
