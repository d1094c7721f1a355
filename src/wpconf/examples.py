"""
Example config files for demos and tests.

`build_example_config` returns the text of a typical hand-edited
wp-config.php: comments that mention constant names, a conditional
definition, a define() with a third argument, a double-quoted value,
and the standard anchor line near the end.
"""
from typing import Optional

from wpconf.model import DEFAULT_ANCHOR


def build_example_config(db_name: str = "wordpress", table_prefix: str = "wp_",
                         debug: Optional[bool] = False, newline: str = "\n") -> str:
    lines = [
        "<?php",
        "/**",
        " * The base configuration for WordPress",
        " *",
        " * define( 'DB_NAME', 'not_this_one' ); is only documentation.",
        " */",
        "",
        "// ** Database settings ** //",
        f"define( 'DB_NAME', '{db_name}' );",
        'define( "DB_USER", "root" ); // local only',
        "define( 'DB_PASSWORD', 'p@ss\\'word' );",
        "define( 'DB_HOST', 'localhost' );",
        "define( 'DB_CHARSET', 'utf8' );",
        "define( 'DB_COLLATE', '' );",
        "",
        "define( 'AUTH_KEY',         'put your unique phrase here' );",
        "define( 'SECURE_AUTH_KEY',  'put your unique phrase here' );",
        "",
        f"$table_prefix = '{table_prefix}';",
        "$message = 'remember: $table_prefix = \"x\"; is not an assignment';",
        "",
        "if ( false ) {",
        "\t$unused_setting = 'never';",
        "}",
        "",
        "define( 'WP_CACHE', true, true );",
    ]
    if debug is not None:
        lines.append(f"define( 'WP_DEBUG', {'true' if debug else 'false'} );")
    lines += [
        "",
        f"{DEFAULT_ANCHOR} Happy publishing. */",
        "",
        "/** Absolute path to the WordPress directory. */",
        "if ( ! defined( 'ABSPATH' ) ) {",
        "\tdefine( 'ABSPATH', __DIR__ . '/' );",
        "}",
        "",
        "require_once ABSPATH . 'wp-settings.php';",
        "",
    ]
    return newline.join(lines)
