from functools import wraps


def notify_exception_method_wrapper(listener, exceptions=(Exception,)):
    """
    Creates a wrapper factory for functions so that the listener is notified when one of the
    given exception types escapes the function. The listener receives the exception, which is
    then re-raised unchanged.

    :param listener: a callable taking the exception instance
    :param exceptions: the exception type, or tuple of types, that trigger a notification
    """
    def wrapper_factory(func):
        @wraps(func)
        def wrapped(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except exceptions as e:
                listener(e)
                raise

        return wrapped

    return wrapper_factory


def wrap_methods(target, names, wrapper):
    """
    Replaces the named methods of the target instance with wrapped versions.
    The wrapped methods are set as instance attributes, so the class is left untouched.
    """
    for name in names:
        setattr(target, name, wrapper(getattr(target, name)))
    return target
