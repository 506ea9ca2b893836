"""
General-purpose miscellaneous declarations useful to all submodules.
"""

from __future__ import annotations
import pathlib
import tempfile
import toml

class CGError(Exception):
    """
    Base class for all errors raised by this package.
    """
    pass

class InputError(CGError, ValueError):
    """
    Recoverable error caused by malformed or out-of-domain user input.
    """
    def __init__(self, argname: str, given=None, reason: str=None):
        if reason is None:
            self.message = f"invalid value for `{argname}`: {given!r}"
        else:
            self.message = f"invalid value for `{argname}` ({reason}): {given!r}"
        self.argname = argname
        self.given = given
        Exception.__init__(self, self.message)

class InvariantViolation(CGError, ArithmeticError):
    """
    Fatal internal contradiction in the exact coefficient algebra. This never
    happens for valid inputs; seeing one means a bug.
    """
    pass

class ConstructionAborted(CGError):
    """
    Raised inside a column task when table construction was aborted because
    another column failed.
    """
    pass

class ConfigStruct:
    def __repr__(self) -> str:
        fields = ", ".join(
            f"{k}={v!r}" for k, v in vars(self).items()
            if not k.startswith("_")
        )
        return f"Config({fields})"

def config_fn(filename: str, subtab: str,
        props: list[(str, ..., type, str, type(lambda: ...))]) \
    -> (type(lambda: ConfigStruct), type(ConfigStruct)):
    """
    Returns a function and a class for reading and storing data from a TOML
    config file. Returned functions have the signature

    func(infile: pathlib.Path=pathlib.Path(`filename`))

    and the returned classes have attributes populated according to the elements
    of `props`, where each element is expected in the form

    (config_key, config_key_default, intype, attribute_name, processor)

    where `intype` is a Constructor taking a single argument for a type into
    which the value taken from the file is coerced, and `processor` is a
    function that transforms from the value taken from the file to the value
    ultimately stored in the Config object returned by `func`. A missing file
    produces a Config holding only defaults.

    Parameters
    ----------
    filename : str
        Path to default config file.
    subtab : str
        Key leading to the subtable in the config file storing relevant values.
    props : list[(str, ..., Constructor, str, Function)]
        Specification for processing relevant values.

    Returns
    -------
    func : Function
        Function for pulling and interpreting values from the config file.
    ConfigType : type
        Type for storing values pulled from the config file.
    """
    ConfigType = type(
        "Config",
        (ConfigStruct,),
        {field: proc(default) for _, default, _, field, proc in props}
    )

    def load_config(infile: pathlib.Path=pathlib.Path(filename)) -> ConfigType:
        infile = pathlib.Path(infile)
        if infile.is_file():
            with infile.open('r') as f:
                table = toml.load(f)
        else:
            table = dict()
        config = ConfigType()
        subtable = table.get(subtab, dict())
        for key, default, typecast, field, proc in props:
            try:
                X = typecast(subtable.get(key, default))
            except (TypeError, ValueError):
                raise InputError(key, subtable.get(key), "bad config value")
            setattr(config, field, proc(X))
        return config

    return (load_config, ConfigType)

def _nonneg(n: int) -> int:
    if n < 0:
        raise InputError("max_workers", n, "must be non-negative")
    return n

load_config, Config = config_fn(
    "cgtable.toml",
    "cgtable",
    [
        ("max_workers", 0, int, "max_workers", _nonneg),
        ("outdir", tempfile.gettempdir(), str, "outdir", pathlib.Path),
        ("table_filename", "clebsch-gordan.html", str, "table_filename",
            lambda s: s),
        ("multi_filename", "multi-angular.html", str, "multi_filename",
            lambda s: s),
        ("log_level", "WARNING", str, "log_level", str.upper),
        ("float_precision", 6, int, "float_precision", lambda p: max(p, 1)),
    ],
)

def gen_table_fmt(label_fmts, s="  ", L=12, P=5, K=2) -> (str, str):
    """
    Generate the column labels and format string of a table from a list of
    tuples following
        (
            'column label',
            x in {'s','s>','i','f','g','e'},
            {l: length override, p: precision override} (optional)
        )
    """
    head = ""
    lines = ""
    fmt = ""
    names = list()
    for label_fmt in label_fmts:
        names.append(label_fmt[0])
        overrides = dict() if len(label_fmt) < 3 else label_fmt[2]
        l = overrides.get("l",
            max(int((len(label_fmt[0])+K-1)/K)*K, L*(label_fmt[1] in ['e','f','g']))
        )
        p = overrides.get("p",
            l-7 if (l-7 >= 1 and l-7 <= P) else P
        )
        head += "{:"+str(l)+"s}"+s
        lines += l*"-" + s
        if label_fmt[1] == 's':
            fmt += "{:"+str(l)+"s}"+s
        elif label_fmt[1] == 's>':
            fmt += "{:>"+str(l)+"s}"+s
        elif label_fmt[1] == 'i':
            fmt += "{:"+str(l)+".0f}"+s
        elif label_fmt[1] in ['e', 'f', 'g']:
            fmt += "{:"+str(l)+"."+str(p)+label_fmt[1]+"}"+s
        else:
            raise ValueError("Format is not one of {'s', 's>', 'i', 'f', 'g', 'e'}")
    head = head[:-len(s)]
    lines = lines[:-len(s)]
    fmt = fmt[:-len(s)]
    return head.format(*names)+"\n"+lines, fmt
