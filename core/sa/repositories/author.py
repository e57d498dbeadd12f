# core/sa/repositories/author.py
from typing import Optional
from sqlalchemy.orm import Session
from ..models import Author

class AuthorRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_name(self, name: str) -> Optional[Author]:
        return self.session.query(Author).filter(Author.name == name).first()

    def get_or_create(self, name: str) -> Author:
        """Get an author by exact name, creating it if missing (flushed, not committed)."""
        name = name.strip()
        author = self.get_by_name(name)
        if author is None:
            author = Author(name=name)
            self.session.add(author)
            self.session.flush()
        return author

