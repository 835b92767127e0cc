class CommonEqualityMixin(object):
    """ value equality for simple objects, comparing the instance dictionaries. """

    def __eq__(self, other):
        return isinstance(other, self.__class__) and hasattr(other, '__dict__') \
            and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((self.__class__, tuple(sorted(self.__dict__.items()))))
