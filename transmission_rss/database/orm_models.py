from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Model(DeclarativeBase):
    pass


class SeenTorrent(Model):
    __tablename__ = "seen_torrent"

    fingerprint: Mapped[str] = mapped_column(String(64), primary_key=True)


class StoreMeta(Model):
    __tablename__ = "store_meta"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(String, nullable=False)
