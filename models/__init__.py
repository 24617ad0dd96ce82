from .user import User
from .community import Post, Comment, Like, Bookmark
from .reel import Reel, ReelComment, ReelLike
from .course import Course, CourseVideo, CoursePurchase
from .blog import BlogPost

__all__ = [
    "User", "Post", "Comment", "Like", "Bookmark",
    "Reel", "ReelComment", "ReelLike",
    "Course", "CourseVideo", "CoursePurchase", "BlogPost",
]
