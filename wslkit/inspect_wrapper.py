import inspect


def get_target_function_default_args_and_combine_with_current(function_name, *args, **kwargs):
    """
    Bind the passed arguments to the signature of the decorated function and fill in its defaults.

    Decorators only see the arguments that were passed explicitly. For:
        def read_file(file_path: str, file_mode: str = 'r', **kwargs)
        read_file('/etc/wsl.conf')
    the decorator gets args=('/etc/wsl.conf',) and no 'file_mode'. After binding, everything is in 'kwargs':
        {'file_path': '/etc/wsl.conf', 'file_mode': 'r'}
    and the extra '**kwargs' of the target function are merged into the same dictionary.

    Usage:
        args, kwargs = get_target_function_default_args_and_combine_with_current(function_name, *args, **kwargs)

    :param function_name: the decorated function object.
    :return: tuple of (empty args tuple, kwargs dict).
    """

    bound = inspect.signature(function_name).bind(*args, **kwargs)
    bound.apply_defaults()
    kwargs = dict(bound.arguments)

    kwargs.update(kwargs.pop('kwargs', {}))

    return (), kwargs
