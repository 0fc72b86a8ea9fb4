import dynstruct


def log_params(name, params):
    dynstruct.logger.info(
        f"Received parameters: \n{name}\n  "
        + "\n  ".join(f"--{k}={v}" for k, v in params.items())
    )


def parse_int_list(value) -> list:
    """Parse "0,10,20" or a sequence (as passed by fire) into a list of int"""
    if isinstance(value, str):
        return [int(v) for v in value.split(",") if v.strip() != ""]
    if isinstance(value, int):
        return [value]
    return [int(v) for v in value]
