VERSION_INT = 0, 1, 0  # noqa
VERSION = '.'.join([str(x) for x in VERSION_INT])
