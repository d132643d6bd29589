import traceback


def get_as_string(exc: BaseException = None) -> str:
    """
    Returns traceback as string.

    :param exc: Exception to get traceback from. If 'None', the exception currently being handled will be used.
    :return: Traceback as string.
    """

    if exc is None:
        return traceback.format_exc()

    return ''.join(traceback.TracebackException.from_exception(exc).format())
