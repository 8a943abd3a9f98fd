import enum


class MediaType(str, enum.Enum):
    BOOK = "book"
    MOVIE = "movie"
    TV_SHOW = "tv_show"
