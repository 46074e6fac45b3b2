from typing import Any, Dict, Optional

import pandas as pd

from crm_connector.config import prepare_reader, prepare_writer
from crm_connector.errors import MalformedRecordError, RemoteWriteError
from crm_connector.output import write_frame
from crm_connector.parsing import records_to_frame
from crm_connector.properties import PropertyResolver
from crm_connector.reader import BufferedSequenceReader
from crm_connector.request_helpers import (
    HttpTransport,
    build_session,
    build_url,
    log_exception,
)
from crm_connector.writer import UpsertWriter, WriteAction


class Connector:
    """Thin orchestrator wiring readers and writers to their config."""

    def __init__(self, config: Dict[str, Any], log, transport=None):
        self.config = config
        self.log = log
        self.transport = transport
        self.resolver = PropertyResolver()

    def _transport(self, cfg):
        if self.transport is not None:
            return self.transport
        return HttpTransport(
            build_session(cfg.session_opts), timeout=cfg.timeout
        )

    def build_reader(self, source_name: str, env_name: str):
        cfg = prepare_reader(self.config, source_name, env_name)
        reader = BufferedSequenceReader.from_config(
            cfg, self._transport(cfg), log=self.log
        )
        return cfg, reader

    def build_writer(self, target_name: str, env_name: str):
        cfg = prepare_writer(self.config, target_name, env_name)
        writer = UpsertWriter.from_config(
            cfg, self._transport(cfg), self.resolver, log=self.log
        )
        return cfg, writer

    # ------------ read_frame ------------
    def read_frame(self, source_name: str, env_name: str) -> pd.DataFrame:
        _, reader = self.build_reader(source_name, env_name)
        reader.open()
        try:
            return records_to_frame(reader)
        finally:
            reader.close()

    # ------------ run_read ------------
    def run_read(
        self,
        source_name: str,
        env_name: str,
        output_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        started = pd.Timestamp.now(tz="UTC")
        self.log.info(f"[read] start source={source_name} env={env_name}")

        cfg, reader = self.build_reader(source_name, env_name)
        source_url = build_url(cfg.base_url, cfg.path)
        reader.open()
        try:
            df = records_to_frame(reader)
            pages = reader.pages_fetched
        except Exception as e:
            log_exception(self.log, source_url, e, prefix="[read] ")
            raise
        finally:
            reader.close()

        if output_path:
            write_frame(df, output_path)

        ended = pd.Timestamp.now(tz="UTC")
        self.log.info(
            f"[read] done source={source_name} env={env_name} rows={len(df)} "
            f"pages={pages} duration={(ended - started).total_seconds():.3f}s "
            f"dest={output_path}"
        )
        return {
            "source": source_name,
            "env": env_name,
            "rows": int(len(df)),
            "pages": pages,
            "output_path": output_path,
            "started_at": started.isoformat(),
            "ended_at": ended.isoformat(),
            "duration_s": float((ended - started).total_seconds()),
            "source_url": source_url,
            "pagination_mode": cfg.mode,
        }

    # ------------ run_sync ------------
    def run_sync(
        self, source_name: str, target_name: str, env_name: str
    ) -> Dict[str, Any]:
        started = pd.Timestamp.now(tz="UTC")
        self.log.info(
            f"[sync] start source={source_name} target={target_name} env={env_name}"
        )

        src_cfg, reader = self.build_reader(source_name, env_name)
        tgt_cfg, writer = self.build_writer(target_name, env_name)
        source_url = build_url(src_cfg.base_url, src_cfg.path)

        counts = {a.value: 0 for a in WriteAction}
        counts["failed"] = 0
        rows = 0

        reader.open()
        writer.open()
        try:
            for record in reader:
                rows += 1
                try:
                    action = writer.write_record(record)
                except (RemoteWriteError, MalformedRecordError) as e:
                    if not tgt_cfg.continue_on_error:
                        raise
                    counts["failed"] += 1
                    log_exception(
                        self.log,
                        getattr(e, "url", writer.urls.collection),
                        e,
                        prefix=f"[sync] record={rows} ",
                    )
                    continue
                counts[action.value] += 1
        except Exception as e:
            log_exception(self.log, source_url, e, prefix="[sync] ")
            raise
        finally:
            reader.close()
            writer.close()

        ended = pd.Timestamp.now(tz="UTC")
        self.log.info(
            f"[sync] done source={source_name} target={target_name} rows={rows} "
            f"created={counts['created']} updated={counts['updated']} "
            f"skipped={counts['skipped']} failed={counts['failed']} "
            f"duration={(ended - started).total_seconds():.3f}s"
        )
        return {
            "source": source_name,
            "target": target_name,
            "env": env_name,
            "entity": tgt_cfg.entity,
            "strategy": tgt_cfg.strategy,
            "rows": rows,
            **counts,
            "started_at": started.isoformat(),
            "ended_at": ended.isoformat(),
            "duration_s": float((ended - started).total_seconds()),
            "source_url": source_url,
            "pagination_mode": src_cfg.mode,
        }
