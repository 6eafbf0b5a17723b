from etl_toolbox.io.loader.sql_sink import SqlTableSink

__all__ = ["SqlTableSink"]
