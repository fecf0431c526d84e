"""
Built-in heuristic templates for A-Z.

Used when a profile has no captured samples yet so nearest-neighbor lookup
works out of the box. Vectors follow the 18-dim feature layout; letters whose
static pose is indistinguishable from another (J/I, N/M, P/K, Q/G, S/A) share
the same vector.
"""

import copy

# Typical normalized magnitudes
_EXT, _CUR = 0.9, 0.32          # tip-to-wrist: extended / curled
_MID_EXT, _MID_CUR = 0.6, 0.12  # tip-to-joint: extended / curled
_NEAR, _FAR = 0.08, 0.45        # tip pair distances


def _vector(tips, curls, pairs, angles):
    if (len(tips), len(curls), len(pairs), len(angles)) != (5, 5, 5, 3):
        raise ValueError("seed vector needs 5 tips, 5 curls, 5 pairs and 3 angles")
    return list(tips) + list(curls) + list(pairs) + list(angles)


def _build():
    e, c, me, mc = _EXT, _CUR, _MID_EXT, _MID_CUR
    t = {}
    t["A"] = _vector([c] * 5, [mc] * 5, [_NEAR] * 5, [2.6, 2.6, 2.6])
    t["B"] = _vector([c, e, e, e, e], [mc, me, me, me, me], [_FAR] * 5, [0.4, 0.45, 0.5])
    t["C"] = _vector([0.7, 0.75, 0.78, 0.72, 0.7], [0.35, 0.38, 0.4, 0.36, 0.34],
                     [0.25, 0.22, 0.26, 0.28, 0.2], [1.2, 1.1, 1.15])
    t["D"] = _vector([c, e, c, c, c], [mc, me, mc, mc, mc],
                     [0.25, 0.18, 0.2, 0.2, 0.18], [0.6, 1.8, 1.9])
    t["E"] = _vector([c] * 5, [mc] * 5, [_NEAR] * 5, [2.4, 2.4, 2.4])
    t["F"] = _vector([0.45, 0.7, 0.7, 0.65, 0.6], [mc, me, me, me, me],
                     [0.06, 0.22, 0.25, 0.28, 0.22], [0.6, 0.7, 0.8])
    t["G"] = _vector([0.5, 0.82, 0.5, 0.48, 0.46], [mc, me, mc, mc, mc],
                     [0.28, 0.18, 0.22, 0.2, 0.18], [0.5, 1.4, 1.5])
    t["H"] = _vector([0.4, 0.86, 0.86, 0.48, 0.44], [mc, me, me, mc, mc],
                     [0.12, 0.22, 0.22, 0.2, 0.2], [0.4, 0.45, 1.6])
    t["I"] = _vector([0.4, 0.45, 0.42, 0.4, 0.88], [mc, mc, mc, mc, me],
                     [0.28, 0.18, 0.22, 0.26, 0.14], [2.0, 2.0, 2.0])
    t["J"] = t["I"]
    t["K"] = _vector([0.6, 0.9, 0.9, 0.5, 0.45], [mc, me, me, mc, mc],
                     [0.22, 0.2, 0.22, 0.2, 0.18], [0.5, 0.45, 1.4])
    t["L"] = _vector([0.9, 0.85, 0.4, 0.38, 0.36], [me, me, mc, mc, mc],
                     [0.18, 0.26, 0.28, 0.24, 0.2], [0.5, 1.7, 1.8])
    t["M"] = _vector([c] * 5, [mc] * 5, [_NEAR] * 5, [2.5, 2.5, 2.5])
    t["N"] = t["M"]
    t["O"] = _vector([0.44] * 5, [mc] * 5, [0.08] * 5, [1.9, 1.9, 1.9])
    t["P"] = t["K"]
    t["Q"] = t["G"]
    t["R"] = _vector([c, 0.8, 0.8, c, c], [mc, me, me, mc, mc],
                     [0.1, 0.08, 0.14, 0.18, 0.16], [0.5, 0.5, 1.8])
    t["S"] = t["A"]
    t["T"] = _vector([c] * 5, [mc] * 5, [_NEAR] * 5, [2.5, 2.5, 2.5])
    t["U"] = _vector([c, 0.9, 0.9, c, c], [mc, me, me, mc, mc],
                     [0.12, 0.12, 0.18, 0.18, 0.16], [0.4, 0.45, 1.6])
    t["V"] = _vector([c, 0.9, 0.9, c, c], [mc, me, me, mc, mc],
                     [0.3, 0.25, 0.3, 0.22, 0.18], [0.4, 0.6, 1.6])
    t["W"] = _vector([c, 0.9, 0.9, 0.9, c], [mc, me, me, me, mc],
                     [0.3, 0.3, 0.3, 0.26, 0.22], [0.4, 0.45, 0.5])
    t["X"] = _vector([c, 0.45, c, c, c], [mc] * 5,
                     [0.18, 0.16, 0.18, 0.16, 0.14], [1.9, 2.0, 2.0])
    t["Y"] = _vector([0.9, 0.36, 0.36, 0.36, 0.9], [me, mc, mc, mc, me],
                     [0.4, 0.22, 0.2, 0.18, 0.4], [0.5, 1.9, 2.0])
    t["Z"] = _vector([c, 0.9, c, c, c], [mc, me, mc, mc, mc],
                     [0.22, 0.18, 0.2, 0.18, 0.16], [0.5, 1.5, 1.6])
    return {letter: [vector] for letter, vector in sorted(t.items())}


_SEED_TEMPLATES = _build()


def seed_templates():
    """Return a fresh deep copy of the built-in template set."""
    return copy.deepcopy(_SEED_TEMPLATES)
